from __future__ import annotations

from enum import Enum as PyEnum
from typing import Any

from sqlalchemy import Insert, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from broadcast_ledger.core.logger import get_logger
from broadcast_ledger.models.job_id import JobID, job_id_column
from broadcast_ledger.models.log_broadcast import LogBroadcast
from broadcast_ledger.models.types import to_block_hash

logger = get_logger(component="BroadcastConsumptionStore")


class BroadcastStoreError(Exception):
    """Base class for failures reported by the broadcast consumption store."""


class BroadcastStorageError(BroadcastStoreError):
    """Raised when the underlying database fails while reading or writing a record."""


class BroadcastAlreadyConsumedError(BroadcastStoreError):
    """Raised when a mark is attempted for a (log, job) pair that already has a record."""

    def __init__(self, block_hash: bytes, log_index: int, job_id: JobID) -> None:
        super().__init__("cannot mark log broadcast as consumed: already exists or insert rejected")
        self.block_hash = block_hash
        self.log_index = log_index
        self.job_id = job_id


class MarkResult(str, PyEnum):
    INSERTED = "inserted"
    ALREADY_CONSUMED = "already_consumed"


# log_index is stored as a signed 64-bit BIGINT.
MAX_LOG_INDEX = 2**63 - 1


def _check_log_index(log_index: int) -> int:
    if isinstance(log_index, bool) or not isinstance(log_index, int):
        raise ValueError(f"log index must be an integer, got {type(log_index).__name__}")
    if log_index < 0:
        raise ValueError(f"log index must be non-negative, got {log_index}")
    if log_index > MAX_LOG_INDEX:
        raise ValueError(f"log index must not exceed {MAX_LOG_INDEX}, got {log_index}")
    return log_index


class BroadcastConsumptionStore:
    """
    Records which jobs have already processed which on-chain logs.

    The session factory is shared with the rest of the application; the store
    only opens short-lived sessions from it and never disposes the engine.
    Every operation is a single statement, so concurrent callers are
    arbitrated by the table's unique constraints alone.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def was_broadcast_consumed(self, block_hash: bytes | str, log_index: int, job_id: JobID) -> bool:
        column = job_id_column(job_id)
        key = to_block_hash(block_hash)
        _check_log_index(log_index)

        stmt = select(LogBroadcast.consumed).where(
            LogBroadcast.block_hash == key,
            LogBroadcast.log_index == log_index,
            getattr(LogBroadcast, column) == job_id.value,
        )
        try:
            async with self._session_factory() as session:
                consumed = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.exception(
                "Failed to look up log broadcast",
                block_hash=key.hex(),
                log_index=log_index,
                job_id=str(job_id),
            )
            raise BroadcastStorageError(f"while checking whether log broadcast was consumed: {exc}") from exc

        logger.debug(
            "Looked up log broadcast",
            block_hash=key.hex(),
            log_index=log_index,
            job_id=str(job_id),
            consumed=bool(consumed),
        )
        return bool(consumed)

    async def try_mark_broadcast_consumed(
        self, block_hash: bytes | str, log_index: int, job_id: JobID
    ) -> MarkResult:
        """
        Insert a consumed record unless one already exists for this key.

        Returns MarkResult.ALREADY_CONSUMED when another call got there first;
        raises BroadcastStorageError for any other database failure.
        """
        column = job_id_column(job_id)
        key = to_block_hash(block_hash)
        _check_log_index(log_index)

        values: dict[str, Any] = {
            "block_hash": key,
            "log_index": log_index,
            column: job_id.value,
            "consumed": True,
        }
        log = logger.bind(block_hash=key.hex(), log_index=log_index, job_id=str(job_id))

        try:
            async with self._session_factory() as session:
                inserted = await self._insert_if_absent(session, values)
                await session.commit()
        except SQLAlchemyError as exc:
            log.exception("Failed to mark log broadcast as consumed")
            raise BroadcastStorageError(f"while marking log broadcast as consumed: {exc}") from exc

        if not inserted:
            log.warning("Log broadcast already marked as consumed")
            return MarkResult.ALREADY_CONSUMED

        log.info("Marked log broadcast as consumed")
        return MarkResult.INSERTED

    async def mark_broadcast_consumed(self, block_hash: bytes | str, log_index: int, job_id: JobID) -> None:
        result = await self.try_mark_broadcast_consumed(block_hash, log_index, job_id)
        if result is MarkResult.ALREADY_CONSUMED:
            raise BroadcastAlreadyConsumedError(to_block_hash(block_hash), log_index, job_id)

    @staticmethod
    def _insert_statement(dialect_name: str) -> Insert | None:
        if dialect_name == "postgresql":
            return postgresql.insert(LogBroadcast).on_conflict_do_nothing()
        if dialect_name == "sqlite":
            return sqlite.insert(LogBroadcast).on_conflict_do_nothing()
        return None

    async def _insert_if_absent(self, session: AsyncSession, values: dict[str, Any]) -> bool:
        stmt = self._insert_statement(session.get_bind().dialect.name)
        if stmt is not None:
            result = await session.execute(stmt.values(**values).returning(LogBroadcast.id))
            return result.scalar_one_or_none() is not None

        # No ON CONFLICT support: let the unique constraint reject the duplicate.
        # Values are validated before this point, so only the unique constraints can reject the row.
        try:
            await session.execute(insert(LogBroadcast).values(**values))
        except IntegrityError:
            await session.rollback()
            return False
        return True
