"""Print a staff bearer token, e.g. for a kitchen display.

``python -m oap.tools.staff_token kitchen-1 --hours 12``
"""

from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from typing import Sequence

from oap.infrastructure.auth.staff_tokens import issue_staff_token


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue a staff bearer token.")
    parser.add_argument("subject", help="Who the token is for, e.g. kitchen-1.")
    parser.add_argument("--hours", type=float, default=12.0, help="Token lifetime in hours.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.hours <= 0:
        print("--hours must be positive", file=sys.stderr)
        return 2
    print(issue_staff_token(args.subject, ttl=timedelta(hours=args.hours)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
