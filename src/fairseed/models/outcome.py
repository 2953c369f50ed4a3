# src/fairseed/models/outcome.py
"""SQLAlchemy model for per-wager outcome records."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fairseed.db.session import Base
from fairseed.db.time import utcnow


class OutcomeRecord(Base):
    """Everything needed to re-derive one wager's outcome after the seed is revealed.

    Records are produced by the session sequencer and may be built without a
    database session; the store decides whether and where they are persisted.
    """

    __tablename__ = "outcome_record"
    __table_args__ = (
        # Nonces are unique within one server seed's scope.
        UniqueConstraint("server_seed_hash", "nonce", name="uq_outcome_seed_nonce"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_kind: Mapped[str] = mapped_column(String(16), nullable=False)

    # Reference to the committed server seed, by its public hash.
    server_seed_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    epoch_index: Mapped[int] = mapped_column(Integer, nullable=False)

    client_seed: Mapped[str] = mapped_column(Text, nullable=False)
    nonce: Mapped[int] = mapped_column(BigInteger, nullable=False)

    digest_hex: Mapped[str] = mapped_column(String(64), nullable=False)
    raw_output: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    # "heads"/"tails", an integer, or a list of slot symbols.
    interpreted_outcome: Mapped[Any] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
