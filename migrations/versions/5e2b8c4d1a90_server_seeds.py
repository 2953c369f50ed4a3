"""server seeds

Revision ID: 5e2b8c4d1a90
Revises: 3c1f0a9b7d42
Create Date: 2026-10-19 16:40:02.118734

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5e2b8c4d1a90"
down_revision: Union[str, Sequence[str], None] = "3c1f0a9b7d42"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Persist the committed server seed history."""
    op.create_table(
        "server_seed",
        sa.Column("epoch_index", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("hashed_value", sa.String(length=64), nullable=False),
        sa.Column("plaintext", sa.Text(), nullable=False),
        sa.Column("revealed_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("epoch_index"),
        sa.UniqueConstraint("hashed_value"),
    )


def downgrade() -> None:
    """Drop the server seed history."""
    op.drop_table("server_seed")
