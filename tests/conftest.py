import pytest
import sys
from pathlib import Path

# Add src to sys.path so we can import almanac_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


SAMPLE_ALMANAC = """\
seeds: 79 14 55 13

seed-to-soil map:
50 98 2
52 50 48

soil-to-fertilizer map:
0 15 37
37 52 2
39 0 15

fertilizer-to-water map:
49 53 8
0 11 42
42 0 7
57 7 4

water-to-light map:
88 18 7
18 25 70

light-to-temperature map:
45 77 23
81 45 19
68 64 13

temperature-to-humidity map:
0 69 1
1 0 69

humidity-to-location map:
60 56 37
56 93 4
"""


# Common test fixtures
@pytest.fixture
def sample_text():
    """Return the standard sample almanac."""
    return SAMPLE_ALMANAC


@pytest.fixture
def sample_values_chain(sample_text):
    """Sample almanac with seeds read as individual values (part 1)."""
    from almanac_toolkit.loading import SeedMode, parse_almanac
    return parse_almanac(sample_text, SeedMode.VALUES)


@pytest.fixture
def sample_pairs_chain(sample_text):
    """Sample almanac with seeds read as start/length pairs (part 2)."""
    from almanac_toolkit.loading import SeedMode, parse_almanac
    return parse_almanac(sample_text, SeedMode.PAIRS)


@pytest.fixture
def sample_file(tmp_path: Path, sample_text):
    """Write the sample almanac to a file."""
    path = tmp_path / "sample.txt"
    path.write_text(sample_text, encoding="utf-8")
    return path
