"""
Module: range_map

Purpose:
    Provides the Entry and RangeMap dataclasses - one stage of the almanac
    pipeline. A RangeMap is a piecewise translation: values covered by an
    entry are shifted onto its destination interval, everything else maps
    to itself.

Key Classes:
    - Entry: (source_start, source_len, dest_start) triple
    - RangeMap: Ordered entries plus the domain names they connect

Dependencies:
    - bisect, logging (std)
    - numpy: Vectorised lookup over whole batches of values

Used By:
    - core.models.chain.MapChain
    - search.evaluate: Batch evaluation in workers
    - search.propagation: Interval propagation
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from functools import cached_property
from typing import List, Tuple

import numpy as np

from .ranges import U64_LIMIT


logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


@dataclass(frozen=True)
class Entry:
    """
    One translation rule of a RangeMap.

    Attributes:
        source_start: First source value covered
        source_len: Number of covered values
        dest_start: Value that source_start maps to

    Invariants:
        - all fields non-negative
        - source and destination intervals stay inside the 64-bit domain

    Example:
        >>> e = Entry(source_start=98, source_len=2, dest_start=50)
        >>> e.translate(99)
        51
    """

    source_start: int
    source_len: int
    dest_start: int

    def __post_init__(self) -> None:
        """Validate entry bounds on construction."""
        if min(self.source_start, self.source_len, self.dest_start) < 0:
            raise ValueError(f"Entry values cannot be negative: {self}")
        if self.source_stop > U64_LIMIT or self.dest_start + self.source_len > U64_LIMIT:
            raise ValueError(f"Entry exceeds 64-bit domain: {self}")

    @property
    def source_stop(self) -> int:
        """Exclusive end of the source interval."""
        return self.source_start + self.source_len

    @property
    def offset(self) -> int:
        """Signed shift applied to covered values."""
        return self.dest_start - self.source_start

    def covers(self, value: int) -> bool:
        return self.source_start <= value < self.source_stop

    def translate(self, value: int) -> int:
        return value - self.source_start + self.dest_start


@dataclass(frozen=True)
class RangeMap:
    """
    One stage of the pipeline: a total function over the 64-bit domain.

    Entries keep their declaration order and the first entry (in that
    order) covering a value wins. When entries are disjoint, lookups go
    through a view sorted by source_start, which gives the same answer.
    Overlapping entries are accepted with a warning and looked up by
    scanning in declaration order.

    Attributes:
        input_domain: Name of the source domain (e.g. "seed")
        output_domain: Name of the destination domain (e.g. "soil")
        entries: Translation rules in declaration order

    Example:
        >>> m = RangeMap("seed", "soil", (Entry(98, 2, 50), Entry(50, 48, 52)))
        >>> m.lookup(79), m.lookup(14)
        (81, 14)
    """

    input_domain: str
    output_domain: str
    entries: Tuple[Entry, ...] = ()
    _sorted: Tuple[Entry, ...] = field(init=False, repr=False, compare=False)
    _starts: Tuple[int, ...] = field(init=False, repr=False, compare=False)
    _disjoint: bool = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Build the sorted lookup view and check whether entries overlap."""
        object.__setattr__(self, "entries", tuple(self.entries))
        ordered = tuple(sorted(
            (e for e in self.entries if e.source_len > 0),
            key=lambda e: e.source_start,
        ))
        disjoint = True
        for prev, nxt in zip(ordered, ordered[1:]):
            if nxt.source_start < prev.source_stop:
                logger.warning(
                    f"Overlapping entries in {self.name} map: {prev} and {nxt}; "
                    f"first entry in declaration order wins"
                )
                disjoint = False
                break
        object.__setattr__(self, "_sorted", ordered)
        object.__setattr__(self, "_starts", tuple(e.source_start for e in ordered))
        object.__setattr__(self, "_disjoint", disjoint)

    @property
    def name(self) -> str:
        """Header-style name, e.g. "seed-to-soil"."""
        return f"{self.input_domain}-to-{self.output_domain}"

    @property
    def is_disjoint(self) -> bool:
        """True when no two entries cover the same value."""
        return self._disjoint

    # ─────────────────────────────────────────────────────────────────────────
    # Scalar Lookup
    # ─────────────────────────────────────────────────────────────────────────

    def find_entry(self, value: int) -> Entry | None:
        """Return the first entry covering value, or None if it falls in a gap."""
        if not self._disjoint:
            for entry in self.entries:
                if entry.covers(value):
                    return entry
            return None

        idx = bisect_right(self._starts, value) - 1
        if idx >= 0 and self._sorted[idx].covers(value):
            return self._sorted[idx]
        return None

    def lookup(self, value: int) -> int:
        """
        Translate a single value through this stage.

        Args:
            value: Input-domain value

        Returns:
            The translated value, or value itself if no entry covers it
        """
        entry = self.find_entry(value)
        return entry.translate(value) if entry is not None else value

    # ─────────────────────────────────────────────────────────────────────────
    # Vectorised Lookup
    # ─────────────────────────────────────────────────────────────────────────

    @cached_property
    def _arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        # Inclusive ends so a source interval reaching 2**64 still fits uint64
        starts = np.array(self._starts, dtype=np.uint64)
        lasts = np.array([e.source_stop - 1 for e in self._sorted], dtype=np.uint64)
        dests = np.array([e.dest_start for e in self._sorted], dtype=np.uint64)
        return starts, lasts, dests

    def lookup_array(self, values: np.ndarray) -> np.ndarray:
        """
        Translate a uint64 array element-wise.

        Produces exactly what lookup() would for each element, without a
        Python-level loop over the values.

        Args:
            values: Array of uint64 input values

        Returns:
            New uint64 array of translated values
        """
        if not self._sorted:
            return values.copy()
        if not self._disjoint:
            return self._lookup_array_first_match(values)

        starts, lasts, dests = self._arrays
        idx = np.searchsorted(starts, values, side="right") - 1
        safe = np.maximum(idx, 0)
        covered = (idx >= 0) & (values <= lasts[safe])

        # Uncovered elements compute v - v + v; covered ones v - s + d.
        base = np.where(covered, starts[safe], values)
        target = np.where(covered, dests[safe], values)
        return (values - base) + target

    def _lookup_array_first_match(self, values: np.ndarray) -> np.ndarray:
        result = values.copy()
        pending = np.ones(values.shape, dtype=bool)
        for entry in self.entries:
            if entry.source_len == 0:
                continue
            hit = pending & (values >= np.uint64(entry.source_start)) & (
                values <= np.uint64(entry.source_stop - 1)
            )
            result[hit] = values[hit] - np.uint64(entry.source_start) + np.uint64(entry.dest_start)
            pending &= ~hit
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Interval Mapping
    # ─────────────────────────────────────────────────────────────────────────

    def map_interval(self, start: int, stop: int) -> List[Interval]:
        """
        Image of the half-open interval [start, stop) under this stage.

        The interval is split at entry boundaries; covered pieces are
        shifted, gaps pass through unchanged.

        Args:
            start: First value of the interval
            stop: Exclusive end of the interval

        Returns:
            List of (start, stop) output intervals, unsorted and possibly
            adjacent
        """
        if not self._disjoint:
            return self._map_interval_first_match(start, stop)

        pieces: List[Interval] = []
        cursor = start
        idx = max(bisect_right(self._starts, start) - 1, 0)

        for entry in self._sorted[idx:]:
            if cursor >= stop or entry.source_start >= stop:
                break
            if entry.source_stop <= cursor:
                continue
            if entry.source_start > cursor:
                pieces.append((cursor, entry.source_start))
                cursor = entry.source_start
            piece_stop = min(stop, entry.source_stop)
            pieces.append((entry.translate(cursor), entry.translate(piece_stop - 1) + 1))
            cursor = piece_stop

        if cursor < stop:
            pieces.append((cursor, stop))
        return pieces

    def _map_interval_first_match(self, start: int, stop: int) -> List[Interval]:
        # Split at every entry boundary inside the interval; within one
        # piece the same entry (or none) covers every value.
        cuts = {start, stop}
        for entry in self.entries:
            for bound in (entry.source_start, entry.source_stop):
                if start < bound < stop:
                    cuts.add(bound)
        bounds = sorted(cuts)

        pieces: List[Interval] = []
        for lo, hi in zip(bounds, bounds[1:]):
            entry = self.find_entry(lo)
            if entry is None:
                pieces.append((lo, hi))
            else:
                pieces.append((entry.translate(lo), entry.translate(hi - 1) + 1))
        return pieces
