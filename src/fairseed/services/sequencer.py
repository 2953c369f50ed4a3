"""Nonce assignment and outcome recording for individual wagers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock
from typing import Protocol

from fairseed.core.errors import OutcomeNotRecordedError
from fairseed.core.fairness import GameKind, generate_outcome
from fairseed.db.time import utcnow
from fairseed.models.outcome import OutcomeRecord
from fairseed.services.seed_registry import SeedRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "InMemoryNonceCounter",
    "NonceCounter",
    "OutcomeStore",
    "SessionSequencer",
]


class NonceCounter(Protocol):
    """Atomic per-seed counter; the first nonce for every seed is 0."""

    def next(self, server_seed_hash: str) -> int: ...

    def peek(self, server_seed_hash: str) -> int: ...

    def release(self, server_seed_hash: str, nonce: int) -> None: ...

    def discard(self, server_seed_hash: str) -> None: ...


class OutcomeStore(Protocol):
    """Anything that can persist an outcome record."""

    def save(self, record: OutcomeRecord) -> OutcomeRecord: ...


class InMemoryNonceCounter:
    """Lock-guarded counters for the worker process that owns the seed registry.

    ``start_from`` supplies the first nonce for a seed the counter has not
    seen yet, so a restarted process resumes after the last stored record.
    """

    def __init__(self, start_from: Callable[[str], int] | None = None) -> None:
        self._counters: dict[str, int] = {}
        self._start_from = start_from
        self._lock = Lock()

    def next(self, server_seed_hash: str) -> int:
        with self._lock:
            nonce = self._current(server_seed_hash)
            self._counters[server_seed_hash] = nonce + 1
            return nonce

    def peek(self, server_seed_hash: str) -> int:
        """Return the nonce the next wager against this seed will receive."""
        with self._lock:
            return self._current(server_seed_hash)

    def release(self, server_seed_hash: str, nonce: int) -> None:
        """Hand back ``nonce`` if it is still the most recently issued one."""
        with self._lock:
            if self._counters.get(server_seed_hash) == nonce + 1:
                self._counters[server_seed_hash] = nonce

    def discard(self, server_seed_hash: str) -> None:
        """Forget a seed's counter; revealed seeds take no further wagers."""
        with self._lock:
            self._counters.pop(server_seed_hash, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)

    def _current(self, server_seed_hash: str) -> int:
        nonce = self._counters.get(server_seed_hash)
        if nonce is None:
            nonce = self._start_from(server_seed_hash) if self._start_from else 0
            self._counters[server_seed_hash] = nonce
        return nonce


class SessionSequencer:
    """Turn a wager into an outcome record against the active server seed.

    Reading the active seed, taking its next nonce, deriving the outcome and
    storing the record all happen under the registry lock, so a concurrent
    rotation or reveal can never split a wager across two seeds and a failed
    store can hand its nonce back before anyone else takes the next one.
    """

    def __init__(self, registry: SeedRegistry, counter: NonceCounter | None = None) -> None:
        self._registry = registry
        self._counter: NonceCounter = counter or InMemoryNonceCounter()

    @property
    def counter(self) -> NonceCounter:
        return self._counter

    def place(
        self,
        game_kind: GameKind | str,
        session_id: str,
        store: OutcomeStore | None = None,
        client_seed: str | None = None,
    ) -> OutcomeRecord:
        """Assign the next nonce, derive the outcome and hand the record to ``store``.

        The client seed is the one ``session_id`` holds at this moment. A
        ``client_seed`` supplied with the wager replaces the session's seed
        first, under the same lock, so nothing can swap it in between.

        Raises:
            NoActiveSeedError: If no committed seed is active. Seeds are never
                committed inline; commitment must precede the bet.
            InvalidInputError: For an unknown game kind.
            OutcomeNotRecordedError: If ``store`` fails. The nonce is released,
                so a retry with the same client seed derives the same outcome.
        """
        kind = GameKind.parse(game_kind)
        with self._registry.locked():
            seed, plaintext = self._registry.checkout_active()
            if client_seed is not None:
                self._registry.set_client_seed(session_id, client_seed)
            seed_value = self._registry.client_seed(session_id).value
            nonce = self._counter.next(seed.hashed_value)
            outcome = generate_outcome(kind, plaintext, seed_value, nonce)

            record = OutcomeRecord(
                game_kind=kind.value,
                server_seed_hash=seed.hashed_value,
                epoch_index=seed.epoch_index,
                client_seed=seed_value,
                nonce=nonce,
                digest_hex=outcome.digest_hex,
                raw_output=list(outcome.raw_output),
                interpreted_outcome=outcome.to_json(),
                created_at=utcnow(),
            )
            if store is not None:
                try:
                    store.save(record)
                except Exception as err:
                    self._counter.release(seed.hashed_value, nonce)
                    logger.error(
                        "Outcome store failed epoch=%d nonce=%d: %s",
                        seed.epoch_index,
                        nonce,
                        err,
                    )
                    raise OutcomeNotRecordedError(seed.epoch_index, nonce) from err

        logger.debug(
            "Placed %s wager epoch=%d nonce=%d", kind.value, seed.epoch_index, nonce
        )
        return record
