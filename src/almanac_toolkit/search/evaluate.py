"""
Module: search.evaluate

Purpose:
    Worker-side evaluation of a single work unit: run every seed of the
    unit through the lookup engine and reduce to a local minimum.

Key Functions:
    - evaluate_unit(): Evaluate one WorkItem against a MapChain
    - init_worker(): ProcessPoolExecutor initializer
    - run_unit(): Process-pool task using the chain installed by init_worker

Key Classes:
    - UnitResult: Local minimum of one work unit and its origin seed

Dependencies:
    - numpy: Chunked vectorised evaluation
    - almanac_toolkit.logging_utils: Worker log forwarding

Used By:
    - search.engine: Dispatches units to these functions
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from almanac_toolkit.core.models import MapChain, WorkItem
from almanac_toolkit.logging_utils import configure_worker_logging

logger = logging.getLogger(__name__)

# Installed once per worker process by init_worker; read-only afterwards.
_WORKER_CHAIN: Optional[MapChain] = None


@dataclass(frozen=True)
class UnitResult:
    """
    Local minimum of one work unit.

    Attributes:
        item: The evaluated work unit
        minimum: Lowest location reached by any seed of the unit
        seed: First seed (in ascending order) reaching that minimum
        elapsed_s: Wall time spent evaluating the unit
        worker: Identifier of the worker that evaluated it
    """
    item: WorkItem
    minimum: int
    seed: int
    elapsed_s: float
    worker: str


def evaluate_unit(chain: MapChain, item: WorkItem, chunk_size: int) -> UnitResult:
    """
    Evaluate every seed of a work unit and reduce to its minimum.

    Seeds are scanned linearly with no skipping; at most chunk_size seeds
    are materialized at a time.

    Args:
        chain: Parsed almanac
        item: Work unit to evaluate (length > 0)
        chunk_size: Maximum seeds per vectorised chunk

    Returns:
        UnitResult with the unit minimum and the seed that produced it
    """
    started = time.perf_counter()
    best: Optional[int] = None
    best_seed = item.start

    for chunk_start in range(item.start, item.stop, chunk_size):
        count = min(chunk_size, item.stop - chunk_start)
        seeds = np.arange(count, dtype=np.uint64) + np.uint64(chunk_start)
        locations = chain.lookup_array(seeds)
        pos = int(np.argmin(locations))
        candidate = int(locations[pos])
        if best is None or candidate < best:
            best = candidate
            best_seed = chunk_start + pos

    if best is None:
        raise ValueError(f"work unit #{item.index} is empty")

    elapsed = time.perf_counter() - started
    logger.debug(
        f"unit #{item.index} ({item.start} -> {item.stop}) = {best} in {elapsed:.3f}s"
    )
    return UnitResult(
        item=item,
        minimum=best,
        seed=best_seed,
        elapsed_s=elapsed,
        worker=_worker_name(),
    )


def init_worker(chain: MapChain, log_queue=None, log_level: int = logging.INFO) -> None:
    """
    Initializer for ProcessPoolExecutor workers.

    Installs the chain once per process so work units are the only
    per-task payload, and forwards worker logs to the parent when a
    queue is given.
    """
    global _WORKER_CHAIN
    _WORKER_CHAIN = chain
    if log_queue is not None:
        configure_worker_logging(log_queue, log_level)


def run_unit(item: WorkItem, chunk_size: int) -> UnitResult:
    """Process-pool task: evaluate item against the installed chain."""
    if _WORKER_CHAIN is None:
        raise RuntimeError("worker chain not initialised; use init_worker")
    return evaluate_unit(_WORKER_CHAIN, item, chunk_size)


def _worker_name() -> str:
    thread = threading.current_thread()
    if thread is threading.main_thread():
        return f"pid-{os.getpid()}"
    return thread.name
