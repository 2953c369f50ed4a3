"""Offline verifier for a single provably-fair game.

Recomputes an outcome from its revealed seed triple without talking to the
service, so players can audit a game on their own machine:

    python -m fairseed.scripts.verify_outcome --game diceroll \
        --server-seed <revealed> --client-seed <seed> --nonce 4 --claimed 21

Exit status is 0 when the claim matches (or no claim was given), 1 when it
does not, and 2 for malformed input or a seed that does not match the
supplied commitment.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from fairseed.core.errors import FairnessError, InvalidInputError
from fairseed.core.fairness import GameKind, OutcomeValue
from fairseed.services import verifier

EXIT_VALID = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


def parse_claim(kind: GameKind, raw: str) -> OutcomeValue:
    """Turn a command-line claim into the outcome's semantic type."""
    if kind in (GameKind.DICEROLL, GameKind.ROULETTE):
        try:
            return int(raw)
        except ValueError as err:
            raise InvalidInputError(f"{kind.value} claims are integers, got {raw!r}") from err
    if kind is GameKind.SLOTS:
        return tuple(symbol.strip() for symbol in raw.split(","))
    return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Verify a provably-fair game outcome.")
    parser.add_argument("--game", required=True, choices=[kind.value for kind in GameKind])
    parser.add_argument("--server-seed", required=True, help="Revealed server seed plaintext")
    parser.add_argument("--client-seed", required=True)
    parser.add_argument("--nonce", required=True, type=int)
    parser.add_argument(
        "--claimed",
        help="Claimed outcome; comma-separated symbols for slots",
    )
    parser.add_argument("--commitment", help="Published server seed hash to check against")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        kind = GameKind.parse(args.game)
        outcome = verifier.recompute(
            kind,
            args.server_seed,
            args.client_seed,
            args.nonce,
            commitment=args.commitment,
        )
        print(f"digest:   {outcome.digest_hex}")
        print(f"raw:      {', '.join(str(draw) for draw in outcome.raw_output)}")
        print(f"outcome:  {outcome.to_json()}")
        if args.claimed is None:
            return EXIT_VALID
        claimed = parse_claim(kind, args.claimed)
        valid = verifier.verify(
            kind, args.server_seed, args.client_seed, args.nonce, claimed
        )
    except FairnessError as err:
        print(f"error: {err}", file=sys.stderr)
        return EXIT_ERROR

    print("verdict:  VALID" if valid else "verdict:  MISMATCH")
    return EXIT_VALID if valid else EXIT_MISMATCH


if __name__ == "__main__":
    sys.exit(main())
