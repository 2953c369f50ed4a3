# src/fairseed/scripts/tokens.py
"""
Mint an operator bearer token for the seed reveal endpoint.

Reveals are an audited, operational action; this script is how the
operations process obtains credentials for it:

    python -m fairseed.scripts.tokens --subject reveal-cron --minutes 15
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from fairseed.api.v1.dependencies import create_operator_token
from fairseed.core.settings import settings


def main(argv: Sequence[str] | None = None) -> str:
    parser = argparse.ArgumentParser(description="Mint an operator JWT.")
    parser.add_argument("--subject", default="operator", help="Token subject (who reveals)")
    parser.add_argument(
        "--minutes",
        type=int,
        default=settings.operator_token_expire_minutes,
        help="Lifetime in minutes",
    )
    args = parser.parse_args(argv)
    token = create_operator_token(args.subject, expires_minutes=args.minutes)
    print(token)
    return token


if __name__ == "__main__":
    main()
