"""
Command-line entry point.

Usage:
    almanac-search input.txt --part 1
    almanac-search input.txt --part 2 --workers 10 --batch-size 1000000
    almanac-search input.txt --part 2 --strategy ranges
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, TextIO

from almanac_toolkit import __version__
from almanac_toolkit.core.models import MapChain
from almanac_toolkit.loading import ParseError, SeedMode, load_almanac
from almanac_toolkit.logging_utils import PACKAGE_LOGGER, configure_logging
from almanac_toolkit.search import (
    EmptyDomainError,
    SearchConfig,
    SearchError,
    TimingLog,
    lowest_location_by_ranges,
    search,
    timed_phase,
)

logger = logging.getLogger(__name__)

# Above this many seeds --trace is skipped; one line per seed would be useless.
TRACE_LIMIT = 10_000

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PARSE_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="almanac-search",
        description="Find the lowest location reachable from an almanac's seeds",
    )
    parser.add_argument("input", type=Path, help="Path to almanac text file")
    parser.add_argument(
        "--part", type=int, choices=(1, 2), default=2,
        help="1 = seeds are individual values, 2 = seeds are start/length pairs",
    )
    parser.add_argument(
        "--strategy", choices=("scan", "ranges"), default="scan",
        help="scan = evaluate every seed, ranges = propagate intervals",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Worker count (default: 1 for part 1, CPU count for part 2)",
    )
    parser.add_argument("--batch-size", type=int, default=None, help="Seeds per work unit")
    parser.add_argument("--executor", choices=("process", "thread"), default="process")
    parser.add_argument("--deadline", type=float, default=None, help="Give up after SECONDS")
    parser.add_argument("--trace", action="store_true", help="Print every lookup step")
    parser.add_argument("--estimate", action="store_true", help="Estimate full-scan time first")
    parser.add_argument("--timing", action="store_true", help="Print timing summary")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def estimate(chain: MapChain, out: TextIO) -> float:
    """Time one lookup and extrapolate to the whole seed domain."""
    seed = chain.seed_ranges[0].start if chain.seed_ranges else 0
    start = time.perf_counter()
    chain.lookup(seed)
    per_lookup = time.perf_counter() - start
    total = per_lookup * chain.total_seed_count()
    out.write(f"Est time per lookup   : {per_lookup * 1e6:.2f}us\n")
    out.write(f"Est time for solution : {total:.1f}s\n")
    return total


def trace_all(chain: MapChain, out: TextIO) -> None:
    """Write one trace line per seed, unless the domain is too large."""
    total = chain.total_seed_count()
    if total > TRACE_LIMIT:
        logger.warning(f"Skipping trace: {total} seeds exceeds limit of {TRACE_LIMIT}")
        return
    for seed_range in chain.seed_ranges:
        for seed in range(seed_range.start, seed_range.stop):
            chain.lookup(seed, trace=out)


def main(argv: Optional[List[str]] = None, out: Optional[TextIO] = None) -> int:
    args = build_parser().parse_args(argv)
    handler = configure_logging(args.verbose)
    try:
        return run(args, out or sys.stdout)
    finally:
        logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)


def run(args: argparse.Namespace, out: TextIO) -> int:
    """Parse, search and report; returns the process exit status."""
    timing = TimingLog()

    try:
        with timed_phase(timing, "parse"):
            chain = load_almanac(args.input, SeedMode.for_part(args.part))
    except FileNotFoundError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except ParseError as e:
        logger.error(f"Parse error in {args.input}: {e}")
        return EXIT_PARSE_ERROR

    out.write(f"Seed ranges: {len(chain.seed_ranges)}\n")
    out.write(f"Total seeds: {chain.total_seed_count()}\n")

    if args.trace:
        trace_all(chain, out)
    if args.estimate:
        estimate(chain, out)

    started = time.perf_counter()
    try:
        if args.strategy == "ranges":
            with timed_phase(timing, "propagate"):
                minimum = lowest_location_by_ranges(chain)
        else:
            workers = args.workers if args.workers is not None else (1 if args.part == 1 else None)
            fields = {} if workers is None else {"concurrency": workers}
            config = SearchConfig(
                batch_size=args.batch_size,
                executor=args.executor,
                deadline_s=args.deadline,
                **fields,
            )
            minimum = search(chain, config, timing=timing).minimum
    except ValueError as e:
        logger.error(f"Invalid option: {e}")
        return EXIT_FAILURE
    except (EmptyDomainError, SearchError) as e:
        logger.error(str(e))
        return EXIT_FAILURE

    out.write(f"RESULT: {minimum} {time.perf_counter() - started:.3f}s\n")
    if args.timing:
        out.write(timing.summary() + "\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
