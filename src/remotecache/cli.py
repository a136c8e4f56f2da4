"""Command-line entry point: ``remotecache [main|post]``."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from remotecache.observability import configure_logging
from remotecache.runner import CacheRunner


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="remotecache",
        description="Restore (main) or save (post) a build cache via the runner cache service.",
    )
    parser.add_argument("phase", nargs="?", choices=("main", "post"), default="main")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write phase events as JSON lines to this file",
    )
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    runner = CacheRunner.from_env()
    code = runner.run_phase(args.phase)
    if args.log_file is not None:
        runner.events.to_json_lines(args.log_file)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
