"""Data access helpers for working with outcome records."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fairseed.models.outcome import OutcomeRecord

__all__ = ["OutcomeRepository"]


class OutcomeRepository:
    """Thin wrapper around database access for outcome records."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def save(self, record: OutcomeRecord) -> OutcomeRecord:
        """Persist a record produced by the sequencer.

        A failed commit is rolled back so the request's session stays usable.
        """
        self.session.add(record)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self.session.refresh(record)
        return record

    def next_nonce(self, server_seed_hash: str) -> int:
        """Return one past the highest stored nonce for a seed, or 0 if none is stored."""
        stmt = select(func.max(OutcomeRecord.nonce)).where(
            OutcomeRecord.server_seed_hash == server_seed_hash.strip().lower()
        )
        highest = self.session.execute(stmt).scalar()
        return 0 if highest is None else int(highest) + 1

    def get_by_id(self, record_id: int) -> OutcomeRecord | None:
        """Return an outcome record by identifier."""
        return self.session.get(OutcomeRecord, record_id)

    def list_for_seed(self, server_seed_hash: str, limit: int | None = None) -> list[OutcomeRecord]:
        """Return records placed against one server seed, in nonce order."""
        stmt = (
            select(OutcomeRecord)
            .where(OutcomeRecord.server_seed_hash == server_seed_hash.strip().lower())
            .order_by(OutcomeRecord.nonce.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def list_recent(self, limit: int) -> list[OutcomeRecord]:
        """Return the most recently stored records."""
        stmt = select(OutcomeRecord).order_by(OutcomeRecord.id.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars())
