"""
Module: search

Purpose:
    Minimum-location search over the seed domain of a MapChain.

Key Functions:
    - search(): Parallel brute-force scan returning a SearchResult
    - find_global_minimum(): Same, returning only the minimum
    - lowest_location_by_ranges(): Interval propagation alternative

Key Classes:
    - SearchConfig: Worker pool and batching settings
    - SearchResult: Minimum with origin seed and statistics
    - TimingLog: Per-unit timing metrics
"""

from .config import SearchConfig
from .engine import (
    EmptyDomainError,
    SearchCancelledError,
    SearchError,
    SearchResult,
    find_global_minimum,
    search,
)
from .evaluate import UnitResult
from .propagation import lowest_location_by_ranges, propagate
from .timing import TimingLog, timed_phase

__all__ = [
    "EmptyDomainError",
    "SearchCancelledError",
    "SearchConfig",
    "SearchError",
    "SearchResult",
    "TimingLog",
    "UnitResult",
    "find_global_minimum",
    "lowest_location_by_ranges",
    "propagate",
    "search",
    "timed_phase",
]
