from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from broadcast_ledger.models.types import GUID, BlockHash

revision = "20241015_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "log_broadcasts",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("block_hash", BlockHash(), nullable=False),
        sa.Column("log_index", sa.BigInteger(), nullable=False),
        sa.Column("job_id", GUID(), nullable=True),
        sa.Column("job_id_v2", sa.Integer(), nullable=True),
        sa.Column("consumed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_log_broadcasts")),
        sa.UniqueConstraint(
            "block_hash", "log_index", "job_id", name=op.f("uq_log_broadcasts_block_hash_log_index_job_id")
        ),
        sa.UniqueConstraint(
            "block_hash", "log_index", "job_id_v2", name=op.f("uq_log_broadcasts_block_hash_log_index_job_id_v2")
        ),
        sa.CheckConstraint(
            "(job_id IS NULL) <> (job_id_v2 IS NULL)", name=op.f("ck_log_broadcasts_exactly_one_job_id")
        ),
        sa.CheckConstraint("log_index >= 0", name=op.f("ck_log_broadcasts_log_index_non_negative")),
    )


def downgrade() -> None:
    op.drop_table("log_broadcasts")
