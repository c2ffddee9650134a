#!/usr/bin/env python3
"""Fake CLI for integration testing.

Writes numbered lines to stdout (and optionally stderr) at a fixed interval,
then exits with the requested code. SIGTERM stops it early with 143.

Usage:
    python fake_cli.py [--count N] [--interval SECONDS] [--stderr] [--exit-code CODE]
"""

from __future__ import annotations

import argparse
import signal
import sys
import time
from typing import NoReturn

_should_stop = False


def signal_handler(signum: int, frame) -> None:
    """Handle SIGTERM."""
    global _should_stop
    _should_stop = True


def main() -> NoReturn:
    parser = argparse.ArgumentParser(description="Fake CLI for testing")
    parser.add_argument("--count", type=int, default=3, help="Lines to write")
    parser.add_argument("--interval", type=float, default=0.0, help="Seconds between lines")
    parser.add_argument("--stderr", action="store_true", help="Also write to stderr")
    parser.add_argument("--exit-code", type=int, default=0, help="Exit code")
    args = parser.parse_args()

    signal.signal(signal.SIGTERM, signal_handler)

    for i in range(1, args.count + 1):
        if _should_stop:
            sys.exit(128 + signal.SIGTERM)
        print(f"out {i}", flush=True)
        if args.stderr:
            print(f"err {i}", file=sys.stderr, flush=True)
        if args.interval:
            time.sleep(args.interval)

    sys.exit(args.exit_code)


if __name__ == "__main__":
    main()
