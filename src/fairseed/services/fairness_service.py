"""Facade over the seed registry, sequencer and verifier.

One `FairnessService` is owned by each service process and injected into
request handlers; nothing in here is a module-level singleton. The registry
caches the seed history in-process, so one worker serves a given database.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session, sessionmaker

from fairseed.core.errors import NoActiveSeedError, SeedNotFoundError, SeedNotRevealedError
from fairseed.core.fairness import GameKind, Outcome, generate_outcome
from fairseed.models.outcome import OutcomeRecord
from fairseed.repositories.outcome_repo import OutcomeRepository
from fairseed.repositories.seed_repo import ServerSeedRepository
from fairseed.services import verifier
from fairseed.services.seed_registry import ClientSeed, SeedRegistry, ServerSeed
from fairseed.services.sequencer import InMemoryNonceCounter, OutcomeStore, SessionSequencer

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from fairseed.core.settings import Settings

logger = logging.getLogger(__name__)

__all__ = ["FairnessService"]


class FairnessService:
    """Everything game UIs, operators and auditors need from the engine."""

    def __init__(
        self,
        registry: SeedRegistry | None = None,
        sequencer: SessionSequencer | None = None,
    ) -> None:
        self.registry = registry or SeedRegistry()
        self.sequencer = sequencer or SessionSequencer(self.registry)

    @classmethod
    def from_settings(
        cls, config: Settings, session_factory: sessionmaker[Session]
    ) -> FairnessService:
        """Build a service backed by the database behind ``session_factory``.

        The seed history is reloaded from the ``server_seed`` table and nonce
        counters resume after the highest stored outcome of each seed.
        """

        def _stored_next_nonce(server_seed_hash: str) -> int:
            with session_factory() as session:
                return OutcomeRepository(session).next_nonce(server_seed_hash)

        registry = SeedRegistry(
            server_seed_bytes=config.server_seed_bytes,
            client_seed_length=config.client_seed_length,
            store=ServerSeedRepository(session_factory),
        )
        counter = InMemoryNonceCounter(start_from=_stored_next_nonce)
        service = cls(registry, SessionSequencer(registry, counter))
        if config.auto_commit_seed:
            service.ensure_active_seed()
        return service

    # --- Player-facing ---------------------------------------------------------------
    def active_seed(self) -> ServerSeed:
        """Return the active seed's public view or raise `NoActiveSeedError`."""
        seed = self.registry.get_active_server_seed()
        if seed is None:
            raise NoActiveSeedError()
        return seed

    def get_public_commitment(self) -> str:
        """Return the hash players see before they bet."""
        return self.active_seed().hashed_value

    def open_session(self, client_seed: str | None = None) -> tuple[str, ClientSeed]:
        return self.registry.open_session(client_seed)

    def client_seed(self, session_id: str) -> ClientSeed:
        return self.registry.client_seed(session_id)

    def set_client_seed(self, session_id: str, value: str) -> ClientSeed:
        return self.registry.set_client_seed(session_id, value)

    def generate_outcome(self, game_kind: GameKind | str, nonce: int, session_id: str) -> Outcome:
        """Derive an outcome from the active seed for an explicitly supplied nonce.

        The plaintext stays in-process; only the outcome leaves. Nonce
        bookkeeping is the caller's concern here, see `place_bet` for the
        sequenced path.
        """
        with self.registry.locked():
            _, plaintext = self.registry.checkout_active()
            client_seed = self.registry.client_seed(session_id).value
            return generate_outcome(game_kind, plaintext, client_seed, nonce)

    def place_bet(
        self,
        game_kind: GameKind | str,
        session_id: str,
        store: OutcomeStore | None = None,
        client_seed: str | None = None,
    ) -> OutcomeRecord:
        """Sequence one wager against the active seed with the session's client seed."""
        return self.sequencer.place(game_kind, session_id, store=store, client_seed=client_seed)

    def next_nonce(self) -> int:
        """Return the nonce the next wager against the active seed will receive."""
        return self.sequencer.counter.peek(self.active_seed().hashed_value)

    def verify(
        self,
        game_kind: GameKind | str,
        server_seed: str,
        client_seed: str,
        nonce: int,
        claimed_outcome: Any,
        *,
        commitment: str | None = None,
    ) -> bool:
        return verifier.verify(
            game_kind, server_seed, client_seed, nonce, claimed_outcome, commitment=commitment
        )

    # --- Operator-facing -------------------------------------------------------------
    def ensure_active_seed(self) -> ServerSeed:
        return self.registry.ensure_active_seed()

    def reveal_and_rotate(self, epoch_index: int, plaintext: str | None = None) -> str:
        """Reveal a seed and, when it was the active one, commit its successor.

        Without ``plaintext`` the registry discloses the seed it holds. The
        revealed seed's nonce counter is dropped.

        Raises:
            SeedNotFoundError: If the epoch does not exist.
            CommitmentMismatchError: If ``plaintext`` does not match the commitment.
        """
        with self.registry.locked():
            active = self.registry.get_active_server_seed()
            was_active = active is not None and active.epoch_index == epoch_index
            if plaintext is None:
                revealed = self.registry.disclose(epoch_index)
            else:
                self.registry.reveal_server_seed(epoch_index, plaintext)
                revealed = plaintext
            self.sequencer.counter.discard(self.registry.get_seed(epoch_index).hashed_value)
            if was_active or self.registry.get_active_server_seed() is None:
                self.registry.rotate_server_seed()
        return revealed

    def seed_history(self) -> list[ServerSeed]:
        return self.registry.history()

    # --- Auditing --------------------------------------------------------------------
    def audit_record(self, record: OutcomeRecord) -> tuple[ServerSeed, Outcome]:
        """Verify a stored record against the seed this registry has revealed.

        Returns:
            The revealed seed and the recomputed outcome.

        Raises:
            SeedNotFoundError: If the record references a commitment this registry never made.
            SeedNotRevealedError: If the referenced seed is still secret.
            FairnessViolationError: If the record does not reproduce.
        """
        seed = self.registry.find_by_hash(record.server_seed_hash)
        if seed is None:
            raise SeedNotFoundError(hashed_value=record.server_seed_hash)
        if seed.revealed_value is None:
            raise SeedNotRevealedError(seed.epoch_index)
        return seed, verifier.verify_record(record, seed.revealed_value)
