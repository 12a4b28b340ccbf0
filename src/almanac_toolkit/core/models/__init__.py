"""
Core Models Package

Immutable, validated data models for the almanac.

All models in this package are frozen dataclasses, so a parsed MapChain
can be shared read-only by every search worker, or pickled once into each
worker process, without copying or locking.
"""

from .ranges import SeedRange, WorkItem, partition, count_work_items
from .range_map import Entry, RangeMap
from .chain import MapChain, TraceStep

__all__ = [
    "Entry",
    "MapChain",
    "RangeMap",
    "SeedRange",
    "TraceStep",
    "WorkItem",
    "count_work_items",
    "partition",
]
