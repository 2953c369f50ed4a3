# src/fairseed/models/server_seed.py
"""SQLAlchemy model for the committed server seed history."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fairseed.db.session import Base
from fairseed.db.time import utcnow


class ServerSeedRecord(Base):
    """One committed server seed.

    ``plaintext`` is server-side state only; no schema or route ever reads it.
    The public value is ``revealed_value``, set once at reveal.
    """

    __tablename__ = "server_seed"

    epoch_index: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    hashed_value: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    plaintext: Mapped[str] = mapped_column(Text, nullable=False)
    revealed_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
