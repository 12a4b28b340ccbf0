"""
Module: search.timing

Purpose:
    Timing instrumentation for the range search to show where time goes
    across work units and estimate throughput.

Key Classes:
    - TimingLog: Collects phase-level and per-work-unit metrics

Key Functions:
    - timed_phase: Context manager for timing code blocks

Dependencies:
    - time (std)
    - contextlib (std)
    - dataclasses (std)

Used By:
    - search.engine: Records every finished work unit
    - cli: --timing summary
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Generator, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitTiming:
    """Timing of one evaluated work unit."""
    unit: int
    range_index: int
    seeds: int
    seconds: float
    worker: str


@dataclass
class TimingLog:
    """
    Timing metrics for a search run.

    Attributes:
        phase_timings: Dict of phase_name -> duration_seconds
        unit_timings: One UnitTiming per finished work unit

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "search"):
        ...     result = search(chain, config, timing=log)
        >>> print(log.summary())
    """
    phase_timings: Dict[str, float] = field(default_factory=dict)
    unit_timings: List[UnitTiming] = field(default_factory=list)

    def log_phase(self, phase: str, duration: float) -> None:
        """Log a run-level timing metric."""
        self.phase_timings[phase] = duration

    def log_unit(
        self,
        unit: int,
        range_index: int,
        seeds: int,
        seconds: float,
        worker: str,
    ) -> None:
        """Log the evaluation time of one work unit."""
        self.unit_timings.append(UnitTiming(unit, range_index, seeds, seconds, worker))

    @property
    def seeds_evaluated(self) -> int:
        return sum(u.seeds for u in self.unit_timings)

    def get_seconds_per_seed(self) -> float:
        """Average worker time spent per seed (0.0 before any unit finishes)."""
        seeds = self.seeds_evaluated
        if not seeds:
            return 0.0
        return sum(u.seconds for u in self.unit_timings) / seeds

    def get_worker_totals(self) -> Dict[str, float]:
        """Busy time per worker."""
        totals: Dict[str, float] = {}
        for u in self.unit_timings:
            totals[u.worker] = totals.get(u.worker, 0.0) + u.seconds
        return totals

    def get_slowest_units(self, n: int = 3) -> List[UnitTiming]:
        """The N slowest work units."""
        return sorted(self.unit_timings, key=lambda u: u.seconds, reverse=True)[:n]

    def summary(self) -> str:
        """Generate human-readable timing summary."""
        lines = ["", "=== Search Timing Summary ==="]

        if self.phase_timings:
            lines.append("Phases:")
            for phase, duration in sorted(self.phase_timings.items()):
                lines.append(f"  {phase:25s} {duration:.3f}s")

        if self.unit_timings:
            lines.append("")
            lines.append(
                f"Work units: {len(self.unit_timings)} "
                f"({self.seeds_evaluated} seeds, "
                f"~{self.get_seconds_per_seed() * 1e9:.1f}ns per seed)"
            )
            lines.append("Busy time per worker:")
            for worker, busy in sorted(self.get_worker_totals().items()):
                lines.append(f"  {worker:25s} {busy:.3f}s")

            lines.append("")
            lines.append("Slowest units:")
            for u in self.get_slowest_units(3):
                lines.append(
                    f"  #{u.unit} (range {u.range_index}, {u.seeds} seeds): {u.seconds:.3f}s"
                )

        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export timing data as dictionary."""
        return {
            "phase_timings": self.phase_timings,
            "unit_count": len(self.unit_timings),
            "seeds_evaluated": self.seeds_evaluated,
            "seconds_per_seed": self.get_seconds_per_seed(),
            "worker_totals": self.get_worker_totals(),
            "slowest_units": [
                {"unit": u.unit, "range_index": u.range_index, "seeds": u.seeds,
                 "seconds": u.seconds, "worker": u.worker}
                for u in self.get_slowest_units(5)
            ],
        }

    def save(self, path: Path) -> None:
        """Save timing data to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Saved timing data to {path}")


@contextmanager
def timed_phase(log: TimingLog, phase: str) -> Generator[None, None, None]:
    """
    Context manager for timing a code phase.

    Args:
        log: TimingLog instance to record metrics
        phase: Name of the phase being timed

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "parse"):
        ...     chain = load_almanac(path)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        log.log_phase(phase, time.perf_counter() - start)
