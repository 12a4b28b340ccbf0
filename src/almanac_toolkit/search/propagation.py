"""
Module: search.propagation

Purpose:
    Algebraic alternative to the brute-force scan. Instead of evaluating
    every seed, whole intervals are pushed through each stage, split at
    entry boundaries. Cost depends on the number of entries and ranges,
    not on how many seeds the ranges hold.

Key Functions:
    - propagate(): Location intervals reachable from the seed ranges
    - lowest_location_by_ranges(): Minimum location via propagation

Used By:
    - cli: --strategy ranges
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from almanac_toolkit.core.models import MapChain

from .engine import EmptyDomainError

logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


def _merge(intervals: List[Interval]) -> List[Interval]:
    """Sort and merge overlapping or adjacent half-open intervals."""
    merged: List[Interval] = []
    for start, stop in sorted(intervals):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], stop))
        else:
            merged.append((start, stop))
    return merged


def propagate(chain: MapChain) -> List[Interval]:
    """
    Push the seed domain through every stage as intervals.

    Intervals are merged after each stage so the working set stays small
    even when many entries split the domain.

    Returns:
        Sorted, disjoint (start, stop) intervals in the location domain
    """
    intervals = _merge([(r.start, r.stop) for r in chain.seed_ranges if not r.is_empty])
    for stage in chain.stages:
        mapped: List[Interval] = []
        for start, stop in intervals:
            mapped.extend(stage.map_interval(start, stop))
        intervals = _merge(mapped)
        logger.debug(f"{stage.name}: {len(intervals)} intervals")
    return intervals


def lowest_location_by_ranges(chain: MapChain) -> int:
    """
    Lowest location reachable from the seed domain, without enumeration.

    Raises:
        EmptyDomainError: If there are no seeds
    """
    if chain.total_seed_count() == 0:
        raise EmptyDomainError("almanac seed ranges contain no seeds")
    return propagate(chain)[0][0]
