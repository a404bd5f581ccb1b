"""Module entrypoint to run `python -m mysqltls`."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .models import Established
from .startup import open_database


def main(argv: Sequence[str] | None = None) -> int:
    """Probe database connectivity using the configured material."""

    parser = argparse.ArgumentParser(prog="mysqltls", description=main.__doc__)
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    parser.add_argument(
        "--soft-fail",
        action="store_true",
        help="Report a failure instead of aborting",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    outcome = open_database(config_path=args.config, allow_hard_fail=not args.soft_fail)
    if isinstance(outcome, Established):
        print(f"Connected (attempts: {outcome.attempts_made})")
        outcome.handle.connection.close()
        return 0
    print(f"Connection failed: {outcome.reason}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
