from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Integer, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from broadcast_ledger.models.base import Base, PrimaryKeyUUIDMixin
from broadcast_ledger.models.types import GUID, BlockHash


class LogBroadcast(PrimaryKeyUUIDMixin, Base):
    """
    One row per (log, job) pair that has been delivered and processed.

    A log is identified by its block hash and index within the block. The job
    is identified by either the legacy UUID (`job_id`) or the v2 integer id
    (`job_id_v2`), never both. Rows are only ever inserted here.
    """

    __tablename__ = "log_broadcasts"
    __table_args__ = (
        UniqueConstraint("block_hash", "log_index", "job_id", name="block_hash_log_index_job_id"),
        UniqueConstraint("block_hash", "log_index", "job_id_v2", name="block_hash_log_index_job_id_v2"),
        CheckConstraint("(job_id IS NULL) <> (job_id_v2 IS NULL)", name="exactly_one_job_id"),
        CheckConstraint("log_index >= 0", name="log_index_non_negative"),
    )

    block_hash: Mapped[bytes] = mapped_column(BlockHash(), nullable=False)
    log_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    job_id: Mapped[Any | None] = mapped_column(GUID(), nullable=True)
    job_id_v2: Mapped[int | None] = mapped_column(Integer, nullable=True)
    consumed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
