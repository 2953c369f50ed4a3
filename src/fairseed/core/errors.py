"""Error taxonomy for the provably-fair engine.

Every failure raised by the seed registry, the outcome generator, the
verifier and the sequencer derives from `FairnessError`. Two of them,
`CommitmentMismatchError` and `FairnessViolationError`, indicate possible
tampering rather than ordinary misuse; they carry ``integrity_alarm = True``
so callers can route them to alerting separately from everything else.

All errors are terminal. Hashing and comparison are deterministic, so
retrying a failed operation with the same inputs can never succeed.
"""

from __future__ import annotations

from typing import ClassVar

__all__ = [
    "FairnessError",
    "NoActiveSeedError",
    "SeedNotFoundError",
    "SeedNotRevealedError",
    "CommitmentMismatchError",
    "WrongSeedReferenceError",
    "FairnessViolationError",
    "InvalidInputError",
    "OutcomeNotRecordedError",
]


class FairnessError(RuntimeError):
    """Base exception for provably-fair failures."""

    integrity_alarm: ClassVar[bool] = False


class NoActiveSeedError(FairnessError):
    """Raised when a bet is attempted while no committed server seed exists."""

    def __init__(self) -> None:
        super().__init__("No committed server seed is active; commit one before betting")


class SeedNotFoundError(FairnessError):
    """Raised when an epoch index or commitment does not exist in the seed history."""

    def __init__(self, epoch_index: int | None = None, *, hashed_value: str | None = None) -> None:
        self.epoch_index = epoch_index
        self.hashed_value = hashed_value
        if hashed_value is not None:
            message = f"No server seed committed with hash {hashed_value}"
        else:
            message = f"No server seed at epoch {epoch_index}"
        super().__init__(message)


class SeedNotRevealedError(FairnessError):
    """Raised when an audit needs a plaintext that has not been disclosed yet."""

    def __init__(self, epoch_index: int) -> None:
        self.epoch_index = epoch_index
        super().__init__(f"Server seed at epoch {epoch_index} has not been revealed yet")


class CommitmentMismatchError(FairnessError):
    """Raised when a revealed plaintext does not hash to its stored commitment."""

    integrity_alarm: ClassVar[bool] = True

    def __init__(self, epoch_index: int, expected_hash: str, actual_hash: str) -> None:
        self.epoch_index = epoch_index
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Plaintext for epoch {epoch_index} hashes to {actual_hash}, "
            f"commitment is {expected_hash}"
        )


class WrongSeedReferenceError(FairnessError):
    """Raised when the verifier is handed a seed that is not the referenced commitment."""

    def __init__(self, expected_hash: str, actual_hash: str) -> None:
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Server seed hashes to {actual_hash}, but the referenced commitment is {expected_hash}"
        )


class FairnessViolationError(FairnessError):
    """Raised when a recomputed outcome differs from the recorded or claimed one."""

    integrity_alarm: ClassVar[bool] = True

    def __init__(self, game_kind: str, nonce: int, claimed: object, computed: object) -> None:
        self.game_kind = game_kind
        self.nonce = nonce
        self.claimed = claimed
        self.computed = computed
        super().__init__(
            f"{game_kind} outcome for nonce {nonce} recomputes to {computed!r}, "
            f"claimed {claimed!r}"
        )


class InvalidInputError(FairnessError, ValueError):
    """Raised for malformed nonces, empty seeds, unknown game kinds or ill-typed claims."""


class OutcomeNotRecordedError(FairnessError):
    """Raised when the outcome store rejects a record; the nonce is released for reuse."""

    def __init__(self, epoch_index: int, nonce: int) -> None:
        self.epoch_index = epoch_index
        self.nonce = nonce
        super().__init__(
            f"Outcome for epoch {epoch_index} nonce {nonce} could not be recorded; "
            "the nonce was not consumed"
        )
