"""
Module: chain

Purpose:
    Provides the MapChain dataclass - the parsed almanac. Holds the seed
    ranges and the ordered stages, and implements the end-to-end lookup
    engine that folds a value through every stage.

Key Classes:
    - MapChain: Seed ranges plus ordered RangeMap stages
    - TraceStep: One (domain, value) record of a traced lookup

Dependencies:
    - numpy: Vectorised end-to-end lookup
    - .range_map.RangeMap
    - .ranges.SeedRange

Used By:
    - loading.parser: Builds MapChain instances
    - search.engine: Shares the chain read-only with every worker
    - cli: Trace and estimate output
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, TextIO, Tuple

import numpy as np

from .range_map import RangeMap
from .ranges import SeedRange


class TraceStep(NamedTuple):
    """Domain name and the value a lookup reached in it."""
    domain: str
    value: int


@dataclass(frozen=True)
class MapChain:
    """
    Parsed almanac: the full pipeline from seeds to locations.

    Stage order is declaration order in the source text. Domain names are
    kept for display only and are never used to reorder stages.

    Attributes:
        seed_ranges: Initial seed domain (union of ranges, no dedup)
        stages: RangeMaps in pipeline order

    Example:
        >>> chain = parse_almanac(text, SeedMode.VALUES)
        >>> chain.lookup(79)
        82
    """

    seed_ranges: Tuple[SeedRange, ...]
    stages: Tuple[RangeMap, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "seed_ranges", tuple(self.seed_ranges))
        object.__setattr__(self, "stages", tuple(self.stages))

    @property
    def seed_domain(self) -> str:
        """Name of the initial domain."""
        return self.stages[0].input_domain if self.stages else "seed"

    @property
    def location_domain(self) -> str:
        """Name of the final output domain."""
        return self.stages[-1].output_domain if self.stages else self.seed_domain

    def total_seed_count(self) -> int:
        """Sum of all seed range lengths (overlaps counted twice)."""
        return sum(r.length for r in self.seed_ranges)

    # ─────────────────────────────────────────────────────────────────────────
    # Lookup Engine
    # ─────────────────────────────────────────────────────────────────────────

    def lookup(self, value: int, trace: Optional[TextIO] = None) -> int:
        """
        Fold a seed through every stage.

        Args:
            value: Seed value
            trace: Optional text sink; receives one line per lookup of the
                form "seed: 79 soil: 81 ... location: 82"

        Returns:
            The value in the final (location) domain
        """
        if trace is not None:
            steps = self.trace_path(value)
            trace.write(" ".join(f"{s.domain}: {s.value}" for s in steps) + "\n")
            return steps[-1].value

        for stage in self.stages:
            value = stage.lookup(value)
        return value

    def trace_path(self, value: int) -> List[TraceStep]:
        """Every intermediate value of a lookup, starting with the seed itself."""
        steps = [TraceStep(self.seed_domain, value)]
        for stage in self.stages:
            value = stage.lookup(value)
            steps.append(TraceStep(stage.output_domain, value))
        return steps

    def lookup_array(self, values: np.ndarray) -> np.ndarray:
        """Vectorised lookup of a uint64 array through every stage."""
        for stage in self.stages:
            values = stage.lookup_array(values)
        return values
