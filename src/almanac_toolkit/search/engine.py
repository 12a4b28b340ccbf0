"""
Module: search.engine

Purpose:
    Find the lowest location reachable from a (possibly huge) seed domain.
    Partitions the seed ranges into work units, feeds them to a fixed-size
    worker pool with dynamic load balancing and reduces the per-unit minima
    to a global minimum.

Key Functions:
    - search(): Full search returning the minimum and its origin
    - find_global_minimum(): Convenience wrapper returning only the minimum

Key Classes:
    - SearchResult: Global minimum, origin seed and run statistics
    - EmptyDomainError: No seeds to search
    - SearchError: A work unit failed
    - SearchCancelledError: Deadline or cancel event fired

Dependencies:
    - concurrent.futures: Process and thread pools
    - multiprocessing: Worker log queue
    - almanac_toolkit.search.evaluate: Work unit evaluation

Used By:
    - cli: Part 1 and part 2 searches
"""

from __future__ import annotations

import logging
import multiprocessing
import threading
import time
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Iterable, Optional, Set

from almanac_toolkit.core.models import MapChain, count_work_items, partition
from almanac_toolkit.logging_utils import PACKAGE_LOGGER, start_log_listener

from .config import SearchConfig
from .evaluate import UnitResult, evaluate_unit, init_worker, run_unit
from .timing import TimingLog

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UnitResult], None]

# How often the dispatcher re-checks cancellation while waiting on workers.
_POLL_INTERVAL_S = 0.1


class EmptyDomainError(Exception):
    """The almanac has no seeds to search."""
    pass


class SearchError(Exception):
    """The search failed (a work unit raised or none ran); no minimum is reported."""
    pass


class SearchCancelledError(SearchError):
    """The search was cancelled or ran past its deadline."""
    pass


@dataclass(frozen=True)
class SearchResult:
    """
    Result of a completed search (immutable).

    Attributes:
        minimum: Lowest location over the whole seed domain
        seed: Earliest seed (in declaration order) reaching the minimum
        range_index: Index of the seed range containing that seed
        unit_count: Number of work units evaluated
        seed_count: Number of seeds evaluated
        elapsed_s: Wall time of the search
    """
    minimum: int
    seed: int
    range_index: int
    unit_count: int
    seed_count: int
    elapsed_s: float


class _MinimumReducer:
    """
    Running minimum over unit results.

    Ties are resolved by dispatch order, so the reported origin is the
    earliest seed reaching the minimum whatever order units finish in.
    """

    def __init__(self, unit_total: int, range_units: Dict[int, int], chain: MapChain):
        self.best: Optional[UnitResult] = None
        self.unit_count = 0
        self.seed_count = 0
        self._unit_total = unit_total
        self._range_units = range_units
        self._range_best: Dict[int, int] = {}
        self._chain = chain

    def add(self, result: UnitResult) -> None:
        self.unit_count += 1
        self.seed_count += result.item.length
        if self.best is None or (result.minimum, result.item.index) < (
            self.best.minimum, self.best.item.index
        ):
            self.best = result

        logger.info(
            f"[{result.worker}] unit #{result.item.index + 1} of {self._unit_total} "
            f"({result.item.start} -> {result.item.stop}) = {result.minimum} "
            f"{result.elapsed_s:.3f}s"
        )
        self._track_range(result)

    def _track_range(self, result: UnitResult) -> None:
        idx = result.item.range_index
        current = self._range_best.get(idx)
        if current is None or result.minimum < current:
            self._range_best[idx] = result.minimum
        self._range_units[idx] -= 1
        if self._range_units[idx] == 0:
            seed_range = self._chain.seed_ranges[idx]
            logger.info(
                f"Range {idx + 1} of {len(self._chain.seed_ranges)} "
                f"({seed_range.start} -> {seed_range.stop}) = {self._range_best[idx]}"
            )


def search(
    chain: MapChain,
    config: Optional[SearchConfig] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
    progress: Optional[ProgressCallback] = None,
    timing: Optional[TimingLog] = None,
) -> SearchResult:
    """
    Find the lowest location reachable from the chain's seed ranges.

    Policy:
    1. Partition seed ranges into work units (whole ranges, or batches of
       at most config.batch_size seeds).
    2. Dispatch units to a pool of config.concurrency workers, keeping at
       most config.max_in_flight outstanding; the next unit is submitted
       as soon as any worker finishes.
    3. Each worker scans every seed of its unit and returns the local
       minimum.
    4. Combine local minima against the running global minimum.

    With concurrency 1 units are evaluated inline in the calling process.

    Args:
        chain: Parsed almanac
        config: Search settings (default SearchConfig())
        cancel_event: Set from another thread to stop dispatching
        progress: Called in the calling thread after each finished unit
        timing: Optional TimingLog receiving per-unit timings

    Returns:
        SearchResult with the global minimum and its origin

    Raises:
        EmptyDomainError: If there are no seed ranges or no seeds
        SearchCancelledError: If cancel_event or the deadline fires
        SearchError: If any work unit raises (original chained as __cause__)

    Example:
        >>> result = search(chain, SearchConfig(concurrency=10, batch_size=1_000_000))
        >>> result.minimum
        46
    """
    config = config or SearchConfig()
    if not chain.seed_ranges:
        raise EmptyDomainError("almanac has no seed ranges")
    total_seeds = chain.total_seed_count()
    if total_seeds == 0:
        raise EmptyDomainError("almanac seed ranges contain no seeds")

    started = time.perf_counter()
    deadline = started + config.deadline_s if config.deadline_s is not None else None

    range_units = {
        idx: count_work_items([r], config.batch_size)
        for idx, r in enumerate(chain.seed_ranges)
    }
    unit_total = sum(range_units.values())
    logger.info(
        f"Searching {total_seeds} seeds in {len(chain.seed_ranges)} ranges "
        f"({unit_total} work units, {config.concurrency} workers)"
    )

    reducer = _MinimumReducer(unit_total, range_units, chain)

    def collect(result: UnitResult) -> None:
        reducer.add(result)
        if timing is not None:
            timing.log_unit(
                result.item.index, result.item.range_index,
                result.item.length, result.elapsed_s, result.worker,
            )
        if progress is not None:
            progress(result)

    def check_cancelled() -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise SearchCancelledError(
                f"search cancelled after {reducer.unit_count} of {unit_total} units"
            )
        if deadline is not None and time.perf_counter() > deadline:
            raise SearchCancelledError(
                f"search exceeded deadline of {config.deadline_s}s after "
                f"{reducer.unit_count} of {unit_total} units"
            )

    items = partition(chain.seed_ranges, config.batch_size)
    if config.concurrency == 1:
        _run_inline(chain, items, config, collect, check_cancelled)
    else:
        watching = cancel_event is not None or deadline is not None
        poll = _POLL_INTERVAL_S if watching else None
        _run_pooled(chain, items, config, collect, check_cancelled, poll)

    elapsed = time.perf_counter() - started
    if timing is not None:
        timing.log_phase("search", elapsed)

    best = reducer.best
    if best is None:
        raise SearchError("search finished without evaluating any work unit")
    logger.info(f"RESULT: {best.minimum} (seed {best.seed}) {elapsed:.3f}s")
    return SearchResult(
        minimum=best.minimum,
        seed=best.seed,
        range_index=best.item.range_index,
        unit_count=reducer.unit_count,
        seed_count=reducer.seed_count,
        elapsed_s=elapsed,
    )


def find_global_minimum(
    chain: MapChain,
    concurrency: Optional[int] = None,
    batch_size: Optional[int] = None,
    **options,
) -> int:
    """
    Lowest location over the chain's seed domain.

    Args:
        chain: Parsed almanac
        concurrency: Worker count (default: CPU count)
        batch_size: Maximum seeds per work unit (default: whole ranges)
        **options: Remaining SearchConfig fields

    Returns:
        The global minimum location
    """
    fields = dict(options, batch_size=batch_size)
    if concurrency is not None:
        fields["concurrency"] = concurrency
    return search(chain, SearchConfig(**fields)).minimum


def _run_inline(chain, items, config, collect, check_cancelled) -> None:
    for item in items:
        check_cancelled()
        try:
            result = evaluate_unit(chain, item, config.chunk_size)
        except Exception as e:
            raise SearchError(f"work unit #{item.index} failed: {e}") from e
        collect(result)


def _run_pooled(
    chain: MapChain,
    items: Iterable,
    config: SearchConfig,
    collect: Callable[[UnitResult], None],
    check_cancelled: Callable[[], None],
    poll: Optional[float],
) -> None:
    """Dispatcher: bounded window of in-flight units over a worker pool."""
    log_queue = None
    stop_listener = threading.Event()
    listener = None

    if config.executor == "process":
        log_queue = multiprocessing.Queue()
        listener = start_log_listener(log_queue, stop_listener)
        level = logging.getLogger(PACKAGE_LOGGER).getEffectiveLevel()
        executor: Executor = ProcessPoolExecutor(
            max_workers=config.concurrency,
            initializer=init_worker,
            initargs=(chain, log_queue, level),
        )
        task = partial(run_unit, chunk_size=config.chunk_size)
    else:
        executor = ThreadPoolExecutor(
            max_workers=config.concurrency,
            thread_name_prefix="search-worker",
        )
        task = partial(evaluate_unit, chain, chunk_size=config.chunk_size)

    pending: Set[Future] = set()
    failed = False

    def drain(return_when: str) -> None:
        nonlocal pending
        done, pending = wait(pending, timeout=poll, return_when=return_when)
        for future in done:
            try:
                result = future.result()
            except Exception as e:
                raise SearchError(f"work unit failed: {e}") from e
            collect(result)

    try:
        for item in items:
            while len(pending) >= config.max_in_flight:
                drain(FIRST_COMPLETED)
                check_cancelled()
            check_cancelled()
            pending.add(executor.submit(task, item))

        while pending:
            drain(FIRST_COMPLETED)
            check_cancelled()
    except BaseException:
        failed = True
        raise
    finally:
        # In-flight units drain; queued ones are dropped on failure.
        executor.shutdown(wait=True, cancel_futures=failed)
        if listener is not None:
            stop_listener.set()
            listener.join()
        if log_queue is not None:
            log_queue.close()
            log_queue.join_thread()
