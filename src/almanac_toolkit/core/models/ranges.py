"""
Module: ranges

Purpose:
    Half-open seed intervals and the transient work items carved out of
    them for batched dispatch.

Key Classes:
    - SeedRange: Contiguous [start, start+length) interval of seeds
    - WorkItem: Sub-range of a SeedRange handed to one worker

Key Functions:
    - partition(): Split seed ranges into work items of bounded size

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.chain.MapChain
    - loading.parser: Seed expansion modes produce SeedRanges
    - search.engine: Dispatches WorkItems to the worker pool
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

#: Exclusive upper bound of the unsigned 64-bit value domain.
U64_LIMIT = 1 << 64


@dataclass(frozen=True, slots=True)
class SeedRange:
    """
    Contiguous interval of seed values.

    Attributes:
        start: First seed in the range
        length: Number of seeds (may be 0)

    Invariants:
        - 0 <= start and 0 <= length
        - start + length <= 2**64

    Example:
        >>> r = SeedRange(79, 14)
        >>> r.stop
        93
    """

    start: int
    length: int

    def __post_init__(self) -> None:
        """Validate bounds on construction."""
        if self.start < 0 or self.length < 0:
            raise ValueError(f"SeedRange bounds cannot be negative: {self.start}, {self.length}")
        if self.start + self.length > U64_LIMIT:
            raise ValueError(f"SeedRange exceeds 64-bit domain: {self.start} + {self.length}")

    @property
    def stop(self) -> int:
        """Exclusive end of the range."""
        return self.start + self.length

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def __contains__(self, value: int) -> bool:
        return self.start <= value < self.stop

    def __repr__(self) -> str:
        return f"SeedRange({self.start} -> {self.stop})"


@dataclass(frozen=True, slots=True)
class WorkItem:
    """
    Indivisible chunk of seeds assigned to one worker.

    Attributes:
        index: Dispatch order of this unit (0-based)
        range_index: Index of the SeedRange it was carved from
        start: First seed to evaluate
        length: Number of seeds to evaluate (always > 0)
    """

    index: int
    range_index: int
    start: int
    length: int

    @property
    def stop(self) -> int:
        """Exclusive end of the unit."""
        return self.start + self.length


def partition(
    seed_ranges: Sequence[SeedRange],
    batch_size: Optional[int] = None,
) -> Iterator[WorkItem]:
    """
    Split seed ranges into consecutive work items.

    Without a batch size every non-empty SeedRange becomes a single work
    item. With one, each range is cut into pieces of at most batch_size
    seeds; the last piece of a range may be shorter. Zero-length ranges
    yield nothing.

    Items are generated lazily so the dispatcher never materializes the
    whole domain.

    Args:
        seed_ranges: Ranges to partition, in declaration order
        batch_size: Maximum seeds per work item, or None for whole ranges

    Yields:
        WorkItem objects numbered in dispatch order

    Raises:
        ValueError: If batch_size is not positive

    Example:
        >>> [(w.start, w.length) for w in partition([SeedRange(0, 5)], 2)]
        [(0, 2), (2, 2), (4, 1)]
    """
    if batch_size is not None and batch_size <= 0:
        raise ValueError(f"batch_size must be positive: {batch_size}")

    index = 0
    for range_index, seed_range in enumerate(seed_ranges):
        if seed_range.is_empty:
            continue
        step = batch_size or seed_range.length
        for start in range(seed_range.start, seed_range.stop, step):
            yield WorkItem(
                index=index,
                range_index=range_index,
                start=start,
                length=min(step, seed_range.stop - start),
            )
            index += 1


def count_work_items(
    seed_ranges: Sequence[SeedRange],
    batch_size: Optional[int] = None,
) -> int:
    """Number of work items partition() would yield, without generating them."""
    if batch_size is None:
        return sum(1 for r in seed_ranges if not r.is_empty)
    return sum(-(-r.length // batch_size) for r in seed_ranges)
