"""
Module: loading.seed_mode

Purpose:
    Enum defining how the numbers on the "seeds:" line are expanded into
    seed ranges. Decouples seed interpretation from the lookup engine and
    the search strategy, which only ever see SeedRange values.

Key Classes:
    - SeedMode: Two-state enum for seed expansion

Used By:
    - loading.parser: parse_almanac
    - cli: --part flag
"""

from __future__ import annotations

from enum import Enum, auto
from typing import List, Sequence

from almanac_toolkit.core.models.ranges import SeedRange


class SeedMode(Enum):
    """
    Controls how the seed list is interpreted.

    Attributes:
        VALUES: Every number is an individual seed (part 1).
                "seeds: 79 14" -> [79, 80), [14, 15)
        PAIRS: Numbers are (start, length) pairs (part 2).
               "seeds: 79 14" -> [79, 93)

    Example:
        >>> SeedMode.PAIRS.expand([79, 14, 55, 13])
        [SeedRange(79 -> 93), SeedRange(55 -> 68)]
    """

    VALUES = auto()  # Flat list of individual seeds
    PAIRS = auto()   # start,length pairs

    @classmethod
    def for_part(cls, part: int) -> "SeedMode":
        """Mode used by puzzle part 1 or 2."""
        if part == 1:
            return cls.VALUES
        if part == 2:
            return cls.PAIRS
        raise ValueError(f"part must be 1 or 2: {part}")

    def expand(self, numbers: Sequence[int]) -> List[SeedRange]:
        """
        Turn the raw seed numbers into seed ranges.

        Raises:
            ValueError: If PAIRS mode receives an odd count of numbers
        """
        if self is SeedMode.VALUES:
            return [SeedRange(n, 1) for n in numbers]

        if len(numbers) % 2:
            raise ValueError(
                f"seed pairs need an even count of numbers, got {len(numbers)}"
            )
        return [
            SeedRange(numbers[i], numbers[i + 1])
            for i in range(0, len(numbers), 2)
        ]
