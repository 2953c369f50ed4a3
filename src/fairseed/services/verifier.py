"""Stateless, after-the-fact verification of game outcomes.

Anything here may run concurrently and repeatedly; the same inputs always
produce the same answer.
"""
from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Any

from fairseed.core.errors import FairnessViolationError, WrongSeedReferenceError
from fairseed.core.fairness import GameKind, Outcome, generate_outcome, hash_server_seed

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from fairseed.models.outcome import OutcomeRecord

logger = logging.getLogger(__name__)

__all__ = ["assert_fair", "check_commitment", "recompute", "verify", "verify_record"]


def check_commitment(revealed_server_seed: str, commitment: str) -> None:
    """Require that ``revealed_server_seed`` is the preimage of ``commitment``.

    Raises:
        WrongSeedReferenceError: If the seed belongs to a different commitment.
    """
    expected = commitment.strip().lower()
    actual = hash_server_seed(revealed_server_seed)
    if not secrets.compare_digest(actual, expected):
        raise WrongSeedReferenceError(expected, actual)


def recompute(
    game_kind: GameKind | str,
    revealed_server_seed: str,
    client_seed: str,
    nonce: int,
    *,
    commitment: str | None = None,
) -> Outcome:
    """Re-derive an outcome, optionally checking the seed against its commitment first."""
    if commitment is not None:
        check_commitment(revealed_server_seed, commitment)
    return generate_outcome(game_kind, revealed_server_seed, client_seed, nonce)


def verify(
    game_kind: GameKind | str,
    revealed_server_seed: str,
    client_seed: str,
    nonce: int,
    claimed_outcome: Any,
    *,
    commitment: str | None = None,
) -> bool:
    """Return True only if the claimed outcome is exactly what the inputs produce.

    Args:
        game_kind: Game the outcome belongs to.
        revealed_server_seed: Server seed plaintext, already disclosed.
        client_seed: Client seed in effect for the wager.
        nonce: Nonce assigned to the wager.
        claimed_outcome: Outcome to check; a string for coinflip, an integer
            for diceroll and roulette, a list of symbols for slots.
        commitment: Optional published hash the seed must match.

    Raises:
        WrongSeedReferenceError: If ``commitment`` is not the seed's hash.
        InvalidInputError: For malformed inputs or an ill-typed claim.
    """
    kind = GameKind.parse(game_kind)
    claimed = kind.normalize_claim(claimed_outcome)
    outcome = recompute(kind, revealed_server_seed, client_seed, nonce, commitment=commitment)
    return outcome.value == claimed


def assert_fair(
    game_kind: GameKind | str,
    revealed_server_seed: str,
    client_seed: str,
    nonce: int,
    claimed_outcome: Any,
    *,
    commitment: str | None = None,
) -> Outcome:
    """Like `verify`, but raise `FairnessViolationError` instead of returning False."""
    kind = GameKind.parse(game_kind)
    claimed = kind.normalize_claim(claimed_outcome)
    outcome = recompute(kind, revealed_server_seed, client_seed, nonce, commitment=commitment)
    if outcome.value != claimed:
        logger.critical(
            "Fairness violation: game=%s nonce=%d claimed=%r computed=%r",
            kind.value,
            nonce,
            claimed,
            outcome.value,
        )
        raise FairnessViolationError(kind.value, nonce, claimed, outcome.value)
    return outcome


def verify_record(record: OutcomeRecord, revealed_server_seed: str) -> Outcome:
    """Audit a stored outcome record against its now-revealed server seed.

    Both the raw slice integers and the interpreted outcome must reproduce.

    Raises:
        WrongSeedReferenceError: If the seed is not the one the record references.
        FairnessViolationError: If either stored value differs from the recomputation.
    """
    outcome = assert_fair(
        record.game_kind,
        revealed_server_seed,
        record.client_seed,
        record.nonce,
        record.interpreted_outcome,
        commitment=record.server_seed_hash,
    )
    if list(outcome.raw_output) != list(record.raw_output):
        logger.critical(
            "Fairness violation on raw output: record=%s computed=%r stored=%r",
            record.id,
            outcome.raw_output,
            record.raw_output,
        )
        raise FairnessViolationError(
            outcome.game_kind.value, record.nonce, record.raw_output, list(outcome.raw_output)
        )
    return outcome
