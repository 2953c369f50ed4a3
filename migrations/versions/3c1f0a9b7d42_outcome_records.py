"""outcome records

Revision ID: 3c1f0a9b7d42
Revises:
Create Date: 2026-10-19 10:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f0a9b7d42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the per-wager outcome record table."""
    op.create_table(
        "outcome_record",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("game_kind", sa.String(length=16), nullable=False),
        sa.Column("server_seed_hash", sa.String(length=64), nullable=False),
        sa.Column("epoch_index", sa.Integer(), nullable=False),
        sa.Column("client_seed", sa.Text(), nullable=False),
        sa.Column("nonce", sa.BigInteger(), nullable=False),
        sa.Column("digest_hex", sa.String(length=64), nullable=False),
        sa.Column("raw_output", sa.JSON(), nullable=False),
        sa.Column("interpreted_outcome", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("server_seed_hash", "nonce", name="uq_outcome_seed_nonce"),
    )
    op.create_index(
        "ix_outcome_record_server_seed_hash",
        "outcome_record",
        ["server_seed_hash"],
    )


def downgrade() -> None:
    """Drop the outcome record table."""
    op.drop_index("ix_outcome_record_server_seed_hash", table_name="outcome_record")
    op.drop_table("outcome_record")
