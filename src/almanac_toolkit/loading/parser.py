"""
Module: loading.parser

Purpose:
    Parse almanac text into an immutable MapChain. All validation happens
    here so that the search never starts on malformed input.

Key Functions:
    - parse_almanac(): Parse almanac text
    - load_almanac(): Read and parse an almanac file

Key Classes:
    - ParseError: Exception for parse failures

Dependencies:
    - re (std)
    - pathlib (std)
    - almanac_toolkit.core.models: MapChain, RangeMap, Entry

Used By:
    - cli: Command-line entry point
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from almanac_toolkit.core.models import Entry, MapChain, RangeMap, SeedRange

from .seed_mode import SeedMode

logger = logging.getLogger(__name__)

_SEEDS_RE = re.compile(r"^seeds:(.*)$")
_HEADER_RE = re.compile(r"^(?P<input>[A-Za-z0-9_]+)-to-(?P<output>[A-Za-z0-9_]+) map:$")
_INT_RE = re.compile(r"^[0-9]+$")


class ParseError(Exception):
    """Error parsing almanac text."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


def parse_almanac(text: str, mode: SeedMode = SeedMode.PAIRS) -> MapChain:
    """
    Parse almanac text.

    Expected layout::

        seeds: 79 14 55 13

        seed-to-soil map:
        50 98 2
        52 50 48

        soil-to-fertilizer map:
        ...

    Validates:
    - Exactly one "seeds:" line of non-negative integers
    - Every map header matches "<name>-to-<name> map:"
    - Every entry line is "<dest> <source> <length>"
    - At least one map block is present

    Args:
        text: Raw almanac text
        mode: How to expand the seed numbers into seed ranges

    Returns:
        MapChain with stages in declaration order

    Raises:
        ParseError: On any malformed or structurally invalid input

    Example:
        >>> chain = parse_almanac(text, SeedMode.VALUES)
        >>> [m.name for m in chain.stages][:2]
        ['seed-to-soil', 'soil-to-fertilizer']
    """
    seed_ranges: Optional[List[SeedRange]] = None
    stages: List[RangeMap] = []

    lines = _numbered_lines(text)
    for number, line in lines:
        if not line:
            continue

        seeds_match = _SEEDS_RE.match(line)
        if seeds_match:
            if seed_ranges is not None:
                raise ParseError("duplicate seeds line", number)
            seed_ranges = _parse_seeds(seeds_match.group(1), mode, number)
            continue

        header_match = _HEADER_RE.match(line)
        if header_match:
            stages.append(_parse_block(header_match, lines))
            continue

        if line.endswith("map:"):
            raise ParseError(f"malformed map header: {line!r}", number)
        raise ParseError(f"unexpected line outside a map block: {line!r}", number)

    if seed_ranges is None:
        raise ParseError("missing seeds line")
    if not stages:
        raise ParseError("no map blocks found")

    logger.debug(
        f"Parsed {len(seed_ranges)} seed ranges and {len(stages)} stages "
        f"({stages[0].input_domain} -> {stages[-1].output_domain})"
    )
    return MapChain(seed_ranges=tuple(seed_ranges), stages=tuple(stages))


def load_almanac(path: Path, mode: SeedMode = SeedMode.PAIRS) -> MapChain:
    """
    Read and parse an almanac file.

    Raises:
        FileNotFoundError: If path doesn't exist
        ParseError: If the contents are not UTF-8 text or are malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Almanac not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"{path} is not valid UTF-8 text: {e}") from e
    return parse_almanac(text, mode)


def _numbered_lines(text: str) -> Iterator[Tuple[int, str]]:
    """Stripped lines with 1-based line numbers, shared by the block parser."""
    for number, line in enumerate(text.splitlines(), start=1):
        yield number, line.strip()


def _parse_seeds(raw: str, mode: SeedMode, number: int) -> List[SeedRange]:
    numbers = [_parse_int(token, number) for token in raw.split()]
    try:
        return mode.expand(numbers)
    except ValueError as e:
        raise ParseError(f"invalid seeds: {e}", number) from e


def _parse_block(
    header: re.Match,
    lines: Iterator[Tuple[int, str]],
) -> RangeMap:
    """Consume entry lines up to the next blank line or end of input."""
    entries: List[Entry] = []
    for number, line in lines:
        if not line:
            break
        fields = line.split()
        if len(fields) != 3:
            raise ParseError(
                f"entry needs 3 numbers (dest source length), got {line!r}", number
            )
        dest, source, length = (_parse_int(f, number) for f in fields)
        try:
            entries.append(Entry(source_start=source, source_len=length, dest_start=dest))
        except ValueError as e:
            raise ParseError(str(e), number) from e

    return RangeMap(
        input_domain=header.group("input"),
        output_domain=header.group("output"),
        entries=tuple(entries),
    )


def _parse_int(token: str, number: int) -> int:
    if not _INT_RE.match(token):
        raise ParseError(f"invalid integer: {token!r}", number)
    return int(token)
