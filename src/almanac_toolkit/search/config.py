"""
Module: search.config

Purpose:
    Configuration dataclass for the minimum-location search. Immutable
    configuration with validation on construction.

Key Classes:
    - SearchConfig: Worker pool, batching and deadline settings

Dependencies:
    - dataclasses (std)
    - os (std): CPU count default

Used By:
    - search.engine: find_global_minimum / search
    - cli: Built from command-line flags
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal, Optional

ExecutorKind = Literal["process", "thread"]


def _default_concurrency() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class SearchConfig:
    """
    Configuration for the range search (immutable).

    Attributes:
        concurrency: Number of pool workers. 1 evaluates inline in the
            calling process with no pool.
        batch_size: Maximum seeds per work unit. None makes every seed
            range a single unit.
        chunk_size: Maximum seeds a worker materializes at once while
            evaluating a unit; bounds per-task memory.
        prefetch: Work units kept in flight per worker. The dispatcher
            never has more than concurrency * prefetch units outstanding.
        executor: "process" for OS-level parallelism, "thread" for an
            in-process thread pool.
        deadline_s: Wall-clock budget in seconds. When exceeded no new
            units are dispatched and the search is cancelled.

    Example:
        >>> config = SearchConfig(concurrency=10, batch_size=1_000_000)
    """

    concurrency: int = field(default_factory=_default_concurrency)
    batch_size: Optional[int] = None
    chunk_size: int = 1_000_000
    prefetch: int = 2
    executor: ExecutorKind = "process"
    deadline_s: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1: {self.concurrency}")
        if self.batch_size is not None and self.batch_size < 1:
            raise ValueError(f"batch_size must be positive: {self.batch_size}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive: {self.chunk_size}")
        if self.prefetch < 1:
            raise ValueError(f"prefetch must be at least 1: {self.prefetch}")
        if self.executor not in ("process", "thread"):
            raise ValueError(f"Invalid executor: {self.executor!r}")
        if self.deadline_s is not None and self.deadline_s <= 0:
            raise ValueError(f"deadline_s must be positive: {self.deadline_s}")

    @property
    def max_in_flight(self) -> int:
        """Upper bound on dispatched but unfinished work units."""
        return self.concurrency * self.prefetch
