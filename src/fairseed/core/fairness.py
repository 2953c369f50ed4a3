"""Deterministic outcome generation for provably-fair games.

This module is the wire protocol third-party verifiers reimplement. It must
stay free of I/O, clocks and hidden state so any party can recompute an
outcome byte-for-byte from the revealed seed triple.

Protocol:
    message  = f"{server_seed}-{client_seed}-{nonce}"   (UTF-8, decimal nonce)
    digest   = SHA-256(message) as lowercase hex
    slice_i  = int(digest[8*i : 8*i + 8], 16)          (unsigned, 32-bit range)
    outcome  = game-specific reduction of one slice per independent draw

Changing any constant below is a breaking change for every past game.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, Union

from fairseed.core.errors import InvalidInputError

HASH_ALGORITHM: Final[str] = "sha256"
SEPARATOR: Final[str] = "-"
SLICE_HEX_CHARS: Final[int] = 8
DIGEST_HEX_CHARS: Final[int] = 64
MAX_SLICES: Final[int] = DIGEST_HEX_CHARS // SLICE_HEX_CHARS

COIN_FACES: Final[tuple[str, str]] = ("heads", "tails")
DICE_FACES: Final[int] = 100
ROULETTE_POCKETS: Final[int] = 37  # European wheel, 0-36
SLOT_REELS: Final[int] = 3
SLOT_SYMBOLS: Final[tuple[str, ...]] = (
    "cherry",
    "coin",
    "star",
    "gem",
    "diamond",
    "crown",
    "jackpot",
)

OutcomeValue = Union[str, int, tuple[str, ...]]

__all__ = [
    "GameKind",
    "Outcome",
    "OutcomeValue",
    "PROTOCOL",
    "build_message",
    "digest_for",
    "generate_outcome",
    "hash_server_seed",
    "hex_slice",
    "validate_nonce",
]


class GameKind(str, Enum):
    """Closed set of supported games."""

    COINFLIP = "coinflip"
    DICEROLL = "diceroll"
    SLOTS = "slots"
    ROULETTE = "roulette"

    @classmethod
    def parse(cls, value: Any) -> GameKind:
        """Return the game kind named by ``value`` or raise `InvalidInputError`."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as err:
            supported = ", ".join(kind.value for kind in cls)
            raise InvalidInputError(
                f"Unsupported game kind {value!r}; expected one of: {supported}"
            ) from err

    @property
    def draws(self) -> int:
        """Number of hash slices consumed per outcome."""
        return SLOT_REELS if self is GameKind.SLOTS else 1

    @property
    def outcome_space(self) -> int:
        """Size of the space each draw is reduced into."""
        if self is GameKind.COINFLIP:
            return len(COIN_FACES)
        if self is GameKind.DICEROLL:
            return DICE_FACES
        if self is GameKind.SLOTS:
            return len(SLOT_SYMBOLS)
        return ROULETTE_POCKETS

    def interpret(self, draws: tuple[int, ...]) -> OutcomeValue:
        """Map raw slice integers to this game's labelled outcome."""
        if len(draws) != self.draws:
            raise InvalidInputError(f"{self.value} needs {self.draws} draw(s), got {len(draws)}")
        first = draws[0]
        if self is GameKind.COINFLIP:
            return COIN_FACES[0] if first % 2 == 0 else COIN_FACES[1]
        if self is GameKind.DICEROLL:
            return (first % DICE_FACES) + 1
        if self is GameKind.SLOTS:
            return tuple(SLOT_SYMBOLS[draw % len(SLOT_SYMBOLS)] for draw in draws)
        return first % ROULETTE_POCKETS

    def normalize_claim(self, claimed: Any) -> OutcomeValue:
        """Type-check a claimed outcome so it can be compared with exact equality.

        Labels compare as strings, numbers as integers and slot results as a
        tuple of symbol strings. JSON lists are accepted for slots.
        """
        if self is GameKind.COINFLIP:
            if not isinstance(claimed, str):
                raise InvalidInputError("coinflip outcomes are strings ('heads' or 'tails')")
            return claimed
        if self is GameKind.SLOTS:
            if not isinstance(claimed, (list, tuple)) or len(claimed) != SLOT_REELS:
                raise InvalidInputError(f"slots outcomes are a list of {SLOT_REELS} symbols")
            if not all(isinstance(symbol, str) for symbol in claimed):
                raise InvalidInputError("slots symbols must be strings")
            return tuple(claimed)
        # bool is an int subclass; True must not pass for 1.
        if isinstance(claimed, bool) or not isinstance(claimed, int):
            raise InvalidInputError(f"{self.value} outcomes are integers")
        return claimed


@dataclass(frozen=True)
class Outcome:
    """Result of one outcome derivation."""

    game_kind: GameKind
    digest_hex: str
    raw_output: tuple[int, ...]
    value: OutcomeValue

    def to_json(self) -> str | int | list[str]:
        """Return the interpreted value in a JSON-friendly shape."""
        if isinstance(self.value, tuple):
            return list(self.value)
        return self.value


def hash_server_seed(plaintext: str) -> str:
    """Return the public commitment for a server seed plaintext."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def validate_nonce(nonce: Any) -> int:
    """Return ``nonce`` if it is a non-negative integer, else raise `InvalidInputError`."""
    if isinstance(nonce, bool) or not isinstance(nonce, int):
        raise InvalidInputError(f"Nonce must be an integer, got {type(nonce).__name__}")
    if nonce < 0:
        raise InvalidInputError(f"Nonce must be non-negative, got {nonce}")
    return nonce


def _require_seed(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidInputError(f"{name} must be a non-empty string")
    return value


def build_message(server_seed: str, client_seed: str, nonce: int) -> str:
    """Return the exact string that gets hashed for one outcome."""
    return SEPARATOR.join((server_seed, client_seed, str(nonce)))


def digest_for(server_seed: str, client_seed: str, nonce: int) -> str:
    """Return the SHA-256 hex digest for a seed triple."""
    message = build_message(server_seed, client_seed, nonce)
    return hashlib.sha256(message.encode("utf-8")).hexdigest()


def hex_slice(digest_hex: str, index: int) -> int:
    """Parse the ``index``-th fixed-width hex slice of a digest as an unsigned integer.

    Python integers are arbitrary precision, so the parse never truncates the
    32-bit slice (the top bit matters for the modulo distribution).
    """
    if not 0 <= index < MAX_SLICES:
        raise InvalidInputError(f"Slice index {index} outside 0..{MAX_SLICES - 1}")
    start = index * SLICE_HEX_CHARS
    return int(digest_hex[start:start + SLICE_HEX_CHARS], 16)


def generate_outcome(
    game_kind: GameKind | str,
    server_seed: str,
    client_seed: str,
    nonce: int,
) -> Outcome:
    """Derive the outcome of one game from its seed triple.

    Args:
        game_kind: Game to derive an outcome for.
        server_seed: Server seed plaintext.
        client_seed: Client seed value in effect for the wager.
        nonce: Per-epoch wager counter.

    Returns:
        The digest, the raw slice integers and the interpreted outcome.

    Raises:
        InvalidInputError: If any input is malformed.
    """
    kind = GameKind.parse(game_kind)
    _require_seed("server_seed", server_seed)
    _require_seed("client_seed", client_seed)
    validate_nonce(nonce)

    digest_hex = digest_for(server_seed, client_seed, nonce)
    draws = tuple(hex_slice(digest_hex, index) for index in range(kind.draws))
    return Outcome(
        game_kind=kind,
        digest_hex=digest_hex,
        raw_output=draws,
        value=kind.interpret(draws),
    )


PROTOCOL: Final[dict[str, object]] = {
    "hash_algorithm": HASH_ALGORITHM,
    "commitment": "sha256(server_seed) as lowercase hex",
    "message_format": "{server_seed}-{client_seed}-{nonce}",
    "nonce_format": "decimal, per server seed epoch, starting at 0",
    "slice_hex_chars": SLICE_HEX_CHARS,
    "slice_parse": "unsigned big-endian integer from hex",
    "games": {
        GameKind.COINFLIP.value: {
            "draws": 1,
            "rule": "slice0 % 2 == 0 -> heads, else tails",
            "outcomes": list(COIN_FACES),
        },
        GameKind.DICEROLL.value: {
            "draws": 1,
            "rule": "(slice0 % 100) + 1",
            "range": [1, DICE_FACES],
        },
        GameKind.SLOTS.value: {
            "draws": SLOT_REELS,
            "rule": "symbols[slice_i % 7] for i in 0..2",
            "symbols": list(SLOT_SYMBOLS),
        },
        GameKind.ROULETTE.value: {
            "draws": 1,
            "rule": "slice0 % 37",
            "range": [0, ROULETTE_POCKETS - 1],
        },
    },
}
