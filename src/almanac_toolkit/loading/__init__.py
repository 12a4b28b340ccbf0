"""
Module: loading

Purpose:
    Turn almanac text into a MapChain.

Key Functions:
    - parse_almanac(): Parse almanac text
    - load_almanac(): Read and parse a file

Key Classes:
    - SeedMode: Seed expansion mode (individual values or pairs)
    - ParseError: Raised for malformed input
"""

from .parser import ParseError, load_almanac, parse_almanac
from .seed_mode import SeedMode

__all__ = [
    "ParseError",
    "SeedMode",
    "load_almanac",
    "parse_almanac",
]
