"""Data access helpers for the persisted server seed history."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fairseed.models.server_seed import ServerSeedRecord

__all__ = ["ServerSeedRepository"]


class ServerSeedRepository:
    """Durable store behind the seed registry.

    The registry outlives any single request, so this repository opens a
    short-lived session per write instead of borrowing the request's session.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        """Initialize the repository with a session factory."""
        self.session_factory = session_factory

    def load(self) -> list[ServerSeedRecord]:
        """Return every committed seed, oldest first."""
        with self.session_factory() as session:
            stmt = select(ServerSeedRecord).order_by(ServerSeedRecord.epoch_index.asc())
            records = list(session.execute(stmt).scalars())
            session.expunge_all()
        return records

    def add(
        self, epoch_index: int, hashed_value: str, plaintext: str, created_at: datetime
    ) -> None:
        """Persist a newly committed seed."""
        self._write(
            ServerSeedRecord(
                epoch_index=epoch_index,
                hashed_value=hashed_value,
                plaintext=plaintext,
                created_at=created_at,
            )
        )

    def mark_revealed(self, epoch_index: int, revealed_value: str, used_at: datetime) -> None:
        """Record the disclosure of a seed."""
        with self.session_factory() as session:
            record = session.get(ServerSeedRecord, epoch_index)
            if record is None:
                raise LookupError(f"Server seed epoch {epoch_index} is not persisted")
            record.revealed_value = revealed_value
            record.used_at = used_at
            self._commit(session)

    def _write(self, record: ServerSeedRecord) -> None:
        with self.session_factory() as session:
            session.add(record)
            self._commit(session)

    @staticmethod
    def _commit(session: Session) -> None:
        try:
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
