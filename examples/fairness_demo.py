#!/usr/bin/env python3
"""Walk through one commit-reveal cycle in-process.

This script shows how to:
1. Commit a server seed and publish only its hash
2. Open a player session with its own client seed and place a few wagers
3. Reveal the server seed and rotate to a new commitment
4. Verify every wager independently from the revealed triple

Usage:
    python examples/fairness_demo.py
"""

import os
import sys

# Add the src directory to the path so we can import fairseed modules
sys.path.insert(0, "src")
os.environ.setdefault("SECRET_KEY", "demo-secret")

from fairseed.core.fairness import GameKind  # noqa: E402
from fairseed.services import FairnessService  # noqa: E402
from fairseed.services.verifier import verify_record  # noqa: E402


def demonstrate_commit_reveal() -> None:
    """Run the complete lifecycle and print each step."""
    print("Fairseed commit-reveal demonstration")
    print("=" * 50)

    service = FairnessService()
    service.ensure_active_seed()
    commitment = service.get_public_commitment()
    print(f"Published commitment: {commitment}")

    session_id, client_seed = service.open_session("player-xyz")
    print(f"Client seed:          {client_seed.value}")
    print()

    records = [
        service.place_bet(kind, session_id)
        for kind in (GameKind.COINFLIP, GameKind.DICEROLL, GameKind.SLOTS, GameKind.ROULETTE)
    ]
    for record in records:
        print(f"  nonce={record.nonce:<3} {record.game_kind:<9} -> {record.interpreted_outcome}")
    print()

    epoch = service.active_seed().epoch_index
    revealed = service.reveal_and_rotate(epoch)
    print(f"Revealed server seed: {revealed}")
    print(f"Next commitment:      {service.get_public_commitment()}")
    print()

    for record in records:
        outcome = verify_record(record, revealed)
        print(f"  verified nonce={record.nonce}: {outcome.to_json()}")


if __name__ == "__main__":
    demonstrate_commit_reveal()
