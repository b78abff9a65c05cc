"""Delivers on-chain log broadcasts to jobs at most once per (log, job) pair."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from broadcast_ledger.core.logger import get_logger
from broadcast_ledger.models.job_id import JobID
from broadcast_ledger.models.types import to_block_hash
from broadcast_ledger.services.log_broadcast_store import BroadcastConsumptionStore, MarkResult

logger = get_logger(component="LogBroadcastDispatcher")


class LogBroadcastEvent(BaseModel):
    """A single log emitted in a block, as handed over by the log feed."""

    block_hash: bytes = Field(..., description="32-byte hash of the block containing the log")
    log_index: int = Field(..., ge=0, description="Position of the log within the block")
    payload: dict[str, Any] = Field(default_factory=dict, description="Decoded log data")
    tx_hash: str | None = Field(default=None, description="Transaction that emitted the log")

    @field_validator("block_hash", mode="before")
    @classmethod
    def normalise_block_hash(cls, value: Any) -> bytes:
        return to_block_hash(value)


LogHandler = Callable[[LogBroadcastEvent], Awaitable[None]]


class LogBroadcastDispatcher:
    """
    Runs job handlers for log broadcasts, skipping logs a job has already consumed.

    A log is marked consumed only after its handler returns, so a handler that
    raises leaves the log eligible for redelivery. If another worker marks the
    same (log, job) pair while our handler runs, the outcome is logged and
    treated as handled.
    """

    def __init__(self, store: BroadcastConsumptionStore) -> None:
        self._store = store

    async def dispatch(self, event: LogBroadcastEvent, job_id: JobID, handler: LogHandler) -> bool:
        """Run `handler` for `event` unless `job_id` already consumed it. Returns whether it ran."""
        log = logger.bind(block_hash=event.block_hash.hex(), log_index=event.log_index, job_id=str(job_id))

        if await self._store.was_broadcast_consumed(event.block_hash, event.log_index, job_id):
            log.info("Log broadcast already consumed, skipping")
            return False

        await handler(event)

        result = await self._store.try_mark_broadcast_consumed(event.block_hash, event.log_index, job_id)
        if result is MarkResult.ALREADY_CONSUMED:
            log.warning("Log broadcast was marked consumed by another worker during processing")
        else:
            log.info("Log broadcast dispatched and marked consumed")
        return True

    async def dispatch_many(
        self, event: LogBroadcastEvent, handlers: Mapping[JobID, LogHandler]
    ) -> list[JobID]:
        dispatched: list[JobID] = []
        for job_id, handler in handlers.items():
            if await self.dispatch(event, job_id, handler):
                dispatched.append(job_id)

        logger.info(
            "Log broadcast fanned out",
            block_hash=event.block_hash.hex(),
            log_index=event.log_index,
            subscribers=len(handlers),
            dispatched=len(dispatched),
        )
        return dispatched
