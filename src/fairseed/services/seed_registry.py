"""Commit/reveal lifecycle for server seeds plus per-session client seeds."""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from threading import RLock
from typing import Final, Protocol

from fairseed.core.errors import (
    CommitmentMismatchError,
    InvalidInputError,
    NoActiveSeedError,
    SeedNotFoundError,
)
from fairseed.core.fairness import hash_server_seed
from fairseed.db.time import utcnow

logger = logging.getLogger(__name__)

DEFAULT_SERVER_SEED_BYTES: Final[int] = 32
MIN_SERVER_SEED_BYTES: Final[int] = 16
DEFAULT_CLIENT_SEED_LENGTH: Final[int] = 16
_CLIENT_SEED_ALPHABET: Final[str] = string.ascii_letters + string.digits

__all__ = [
    "ClientSeed",
    "SeedRegistry",
    "SeedStore",
    "ServerSeed",
    "generate_client_seed",
    "new_session_id",
]


@dataclass
class ServerSeed:
    """One entry of the seed history.

    ``revealed_value`` stays ``None`` until the seed is disclosed; once set it
    always hashes to ``hashed_value``.
    """

    hashed_value: str
    epoch_index: int
    created_at: datetime
    revealed_value: str | None = None
    used_at: datetime | None = None

    @property
    def is_revealed(self) -> bool:
        return self.revealed_value is not None


@dataclass(frozen=True)
class ClientSeed:
    """Player-controlled seed mixed into every outcome of one session."""

    value: str
    created_at: datetime


class StoredSeed(Protocol):
    epoch_index: int
    hashed_value: str
    plaintext: str
    revealed_value: str | None
    created_at: datetime
    used_at: datetime | None


class SeedStore(Protocol):
    """Durable home of the seed history; see `ServerSeedRepository`."""

    def load(self) -> Sequence[StoredSeed]: ...

    def add(
        self, epoch_index: int, hashed_value: str, plaintext: str, created_at: datetime
    ) -> None: ...

    def mark_revealed(self, epoch_index: int, revealed_value: str, used_at: datetime) -> None: ...


def generate_client_seed(length: int = DEFAULT_CLIENT_SEED_LENGTH) -> str:
    """Return a random alphanumeric client seed."""
    return "".join(secrets.choice(_CLIENT_SEED_ALPHABET) for _ in range(length))


def new_session_id() -> str:
    return secrets.token_urlsafe(16)


class SeedRegistry:
    """Ordered, append-only history of server seeds and the client seed of each session.

    Plaintext server seeds are held in a private vault and never leave the
    registry before they are revealed. With a ``store`` the history is
    written through on every commit and reveal and reloaded on construction,
    so a restart loses nothing. Every mutation and every read of the active
    seed goes through one re-entrant lock; callers that must read the active
    seed and act on it atomically (nonce assignment) hold `locked()`.

    Client seeds are keyed by session. Only the session's owner changes its
    seed; the registry itself never does after the initial random value.
    """

    def __init__(
        self,
        *,
        server_seed_bytes: int = DEFAULT_SERVER_SEED_BYTES,
        client_seed_length: int = DEFAULT_CLIENT_SEED_LENGTH,
        store: SeedStore | None = None,
    ) -> None:
        if server_seed_bytes < MIN_SERVER_SEED_BYTES:
            raise InvalidInputError(
                f"Server seeds need at least {MIN_SERVER_SEED_BYTES} bytes of entropy"
            )
        self._server_seed_bytes = server_seed_bytes
        self._client_seed_length = client_seed_length
        self._store = store
        self._lock = RLock()
        self._seeds: list[ServerSeed] = []
        self._vault: dict[int, str] = {}
        self._client_seeds: dict[str, ClientSeed] = {}
        if store is not None:
            self._load(store)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the registry lock so no commit or reveal can interleave."""
        with self._lock:
            yield

    # --- Client seeds ---------------------------------------------------------------
    def open_session(self, client_seed: str | None = None) -> tuple[str, ClientSeed]:
        """Start a player session, with the player's seed or a random one."""
        session_id = new_session_id()
        if client_seed is None:
            seed = self._fresh_client_seed()
            with self._lock:
                self._client_seeds[session_id] = seed
        else:
            seed = self.set_client_seed(session_id, client_seed)
        return session_id, seed

    def client_seed(self, session_id: str) -> ClientSeed:
        """Return the session's client seed, generating one on first use."""
        with self._lock:
            seed = self._client_seeds.get(session_id)
            if seed is None:
                seed = self._client_seeds[session_id] = self._fresh_client_seed()
            return seed

    def set_client_seed(self, session_id: str, value: str) -> ClientSeed:
        """Replace the client seed of one session."""
        if not isinstance(value, str) or not value:
            raise InvalidInputError("Client seed must be a non-empty string")
        with self._lock:
            seed = self._client_seeds[session_id] = ClientSeed(value=value, created_at=utcnow())
            return seed

    # --- Server seeds ---------------------------------------------------------------
    def commit_new_server_seed(self) -> str:
        """Generate, hash and append a new server seed; return only its commitment."""
        plaintext = secrets.token_hex(self._server_seed_bytes)
        hashed = hash_server_seed(plaintext)
        created_at = utcnow()
        with self._lock:
            epoch_index = len(self._seeds)
            if self._store is not None:
                self._store.add(epoch_index, hashed, plaintext, created_at)
            self._seeds.append(
                ServerSeed(hashed_value=hashed, epoch_index=epoch_index, created_at=created_at)
            )
            self._vault[epoch_index] = plaintext
        logger.info("Committed server seed epoch=%d hash=%s", epoch_index, hashed)
        return hashed

    def rotate_server_seed(self) -> str:
        """Commit a fresh seed without revealing the previous one."""
        return self.commit_new_server_seed()

    def get_active_server_seed(self) -> ServerSeed | None:
        """Return the most recent committed seed that has not been revealed."""
        with self._lock:
            seed = self._active()
            return replace(seed) if seed is not None else None

    def ensure_active_seed(self) -> ServerSeed:
        """Commit a seed only when none is active, then return the active one."""
        with self._lock:
            seed = self._active()
            if seed is None:
                self.commit_new_server_seed()
                seed = self._seeds[-1]
            return replace(seed)

    def checkout_active(self) -> tuple[ServerSeed, str]:
        """Return the active seed and its plaintext for in-process outcome generation.

        Raises:
            NoActiveSeedError: If every committed seed has been revealed.
        """
        with self._lock:
            seed = self._active()
            if seed is None:
                raise NoActiveSeedError()
            return replace(seed), self._vault[seed.epoch_index]

    def reveal_server_seed(self, epoch_index: int, plaintext: str) -> bool:
        """Disclose the plaintext for ``epoch_index`` after checking it against the commitment.

        Revealing the same plaintext twice is idempotent. A plaintext that
        does not hash to the commitment is an integrity alarm.

        Raises:
            SeedNotFoundError: If the epoch does not exist.
            CommitmentMismatchError: If the plaintext does not match the commitment.
        """
        if not isinstance(plaintext, str):
            raise InvalidInputError("Server seed plaintext must be a string")
        actual = hash_server_seed(plaintext)
        with self._lock:
            seed = self._lookup(epoch_index)
            if not secrets.compare_digest(actual, seed.hashed_value):
                logger.critical(
                    "Commitment mismatch on reveal: epoch=%d expected=%s actual=%s",
                    epoch_index,
                    seed.hashed_value,
                    actual,
                )
                raise CommitmentMismatchError(epoch_index, seed.hashed_value, actual)
            if seed.revealed_value is not None:
                if seed.revealed_value != plaintext:
                    # Only reachable through a SHA-256 collision.
                    logger.critical("Second plaintext offered for epoch=%d", epoch_index)
                    raise CommitmentMismatchError(epoch_index, seed.hashed_value, actual)
                return True
            used_at = utcnow()
            if self._store is not None:
                self._store.mark_revealed(epoch_index, plaintext, used_at)
            seed.revealed_value = plaintext
            seed.used_at = used_at
            self._vault.pop(epoch_index, None)
        logger.info("Revealed server seed epoch=%d hash=%s", epoch_index, seed.hashed_value)
        return True

    def disclose(self, epoch_index: int) -> str:
        """Reveal ``epoch_index`` using the plaintext held in the vault."""
        with self._lock:
            seed = self._lookup(epoch_index)
            if seed.revealed_value is not None:
                return seed.revealed_value
            plaintext = self._vault[epoch_index]
            self.reveal_server_seed(epoch_index, plaintext)
            return plaintext

    def history(self) -> list[ServerSeed]:
        """Return a snapshot of every seed, oldest first."""
        with self._lock:
            return [replace(seed) for seed in self._seeds]

    def get_seed(self, epoch_index: int) -> ServerSeed:
        with self._lock:
            return replace(self._lookup(epoch_index))

    def find_by_hash(self, hashed_value: str) -> ServerSeed | None:
        """Return the seed whose commitment equals ``hashed_value``, if any."""
        needle = hashed_value.strip().lower()
        with self._lock:
            for seed in self._seeds:
                if seed.hashed_value == needle:
                    return replace(seed)
        return None

    # --- Internal helpers -----------------------------------------------------------
    def _load(self, store: SeedStore) -> None:
        for stored in store.load():
            if stored.epoch_index != len(self._seeds):
                raise RuntimeError(
                    f"Seed history has a gap at epoch {len(self._seeds)}, found {stored.epoch_index}"
                )
            if hash_server_seed(stored.plaintext) != stored.hashed_value:
                logger.critical(
                    "Stored plaintext does not match commitment epoch=%d", stored.epoch_index
                )
                raise CommitmentMismatchError(
                    stored.epoch_index, stored.hashed_value, hash_server_seed(stored.plaintext)
                )
            self._seeds.append(
                ServerSeed(
                    hashed_value=stored.hashed_value,
                    epoch_index=stored.epoch_index,
                    created_at=stored.created_at,
                    revealed_value=stored.revealed_value,
                    used_at=stored.used_at,
                )
            )
            if stored.revealed_value is None:
                self._vault[stored.epoch_index] = stored.plaintext
        logger.info("Loaded %d server seed(s) from the store", len(self._seeds))

    def _fresh_client_seed(self) -> ClientSeed:
        return ClientSeed(value=generate_client_seed(self._client_seed_length), created_at=utcnow())

    def _active(self) -> ServerSeed | None:
        for seed in reversed(self._seeds):
            if not seed.is_revealed:
                return seed
        return None

    def _lookup(self, epoch_index: int) -> ServerSeed:
        if isinstance(epoch_index, bool) or not isinstance(epoch_index, int):
            raise InvalidInputError("Epoch index must be an integer")
        if not 0 <= epoch_index < len(self._seeds):
            logger.warning("Unknown server seed epoch requested: %d", epoch_index)
            raise SeedNotFoundError(epoch_index)
        return self._seeds[epoch_index]
