"""
Unit and integration tests for the range search engine.

Thread pools are used for most invariance checks; one test exercises the
process pool end to end.
"""

import threading
import time

import pytest

from almanac_toolkit.core.models import MapChain, SeedRange
from almanac_toolkit.search import (
    EmptyDomainError,
    SearchCancelledError,
    SearchConfig,
    SearchError,
    TimingLog,
    find_global_minimum,
    search,
)
from almanac_toolkit.search import engine


def _with_seeds(chain, *ranges):
    return MapChain(seed_ranges=tuple(ranges), stages=chain.stages)


class TestSampleResults:
    """End-to-end results on the sample almanac."""

    def test_search_when_values_mode_then_minimum_35(self, sample_values_chain):
        result = search(sample_values_chain, SearchConfig(concurrency=1))
        assert result.minimum == 35
        assert result.seed == 13
        assert result.range_index == 3
        assert result.seed_count == 4

    def test_search_when_pairs_mode_then_minimum_46(self, sample_pairs_chain):
        result = search(sample_pairs_chain, SearchConfig(concurrency=1))
        assert result.minimum == 46
        assert result.seed == 82
        assert result.range_index == 0
        assert result.seed_count == 27

    def test_find_global_minimum_when_called_then_returns_int(self, sample_pairs_chain):
        assert find_global_minimum(sample_pairs_chain, concurrency=1, batch_size=5) == 46

    def test_search_when_process_pool_then_same_minimum(self, sample_pairs_chain):
        config = SearchConfig(concurrency=2, batch_size=4, executor="process")
        result = search(sample_pairs_chain, config)
        assert result.minimum == 46
        assert result.seed == 82


class TestInvariance:
    """The minimum must not depend on partitioning or worker count."""

    @pytest.mark.parametrize("batch_size", [None, 1, 2, 3, 4, 6, 13, 14, 100])
    def test_search_when_batch_size_varies_then_same_result(self, sample_pairs_chain, batch_size):
        result = search(sample_pairs_chain, SearchConfig(concurrency=1, batch_size=batch_size))
        assert (result.minimum, result.seed) == (46, 82)

    @pytest.mark.parametrize("concurrency", [1, 2, 3, 8])
    def test_search_when_concurrency_varies_then_same_result(self, sample_pairs_chain, concurrency):
        config = SearchConfig(concurrency=concurrency, batch_size=2, executor="thread")
        result = search(sample_pairs_chain, config)
        assert (result.minimum, result.seed, result.seed_count) == (46, 82, 27)

    def test_search_when_small_chunks_then_same_result(self, sample_pairs_chain):
        """Chunking inside a unit must not change the unit minimum."""
        config = SearchConfig(concurrency=2, chunk_size=3, executor="thread")
        assert search(sample_pairs_chain, config).minimum == 46

    def test_search_when_tied_minimum_then_earliest_seed_reported(self, sample_values_chain):
        chain = _with_seeds(sample_values_chain, SeedRange(13, 1), SeedRange(13, 1))
        for concurrency in (1, 2):
            config = SearchConfig(concurrency=concurrency, batch_size=1, executor="thread")
            result = search(chain, config)
            assert (result.minimum, result.range_index) == (35, 0)

    def test_search_when_first_result_not_minimum_then_later_minimum_kept(self, sample_values_chain):
        """Every result is compared against the running global minimum."""
        chain = _with_seeds(sample_values_chain, SeedRange(79, 1), SeedRange(13, 1), SeedRange(55, 1))
        assert search(chain, SearchConfig(concurrency=1)).minimum == 35


class TestEdgeCases:
    """Empty domains and zero-length ranges."""

    def test_search_when_no_seed_ranges_then_raises_empty_domain(self, sample_values_chain):
        with pytest.raises(EmptyDomainError):
            search(_with_seeds(sample_values_chain), SearchConfig(concurrency=1))

    def test_search_when_only_zero_length_ranges_then_raises_empty_domain(self, sample_values_chain):
        chain = _with_seeds(sample_values_chain, SeedRange(5, 0), SeedRange(9, 0))
        with pytest.raises(EmptyDomainError):
            search(chain, SearchConfig(concurrency=2, executor="thread"))

    def test_search_when_zero_length_range_present_then_ignored(self, sample_pairs_chain):
        chain = _with_seeds(sample_pairs_chain, SeedRange(0, 0), *sample_pairs_chain.seed_ranges)
        result = search(chain, SearchConfig(concurrency=1, batch_size=3))
        assert result.minimum == 46
        assert result.seed_count == 27
        assert result.range_index == 1

    def test_search_when_unit_count_then_matches_partition(self, sample_pairs_chain):
        result = search(sample_pairs_chain, SearchConfig(concurrency=1, batch_size=5))
        assert result.unit_count == 3 + 3


class TestFailureAndCancellation:
    """Worker failures and external cancellation."""

    def test_search_when_worker_raises_inline_then_search_error(self, sample_pairs_chain, monkeypatch):
        def boom(chain, item, chunk_size):
            raise ArithmeticError("overflow")

        monkeypatch.setattr(engine, "evaluate_unit", boom)
        with pytest.raises(SearchError) as exc_info:
            search(sample_pairs_chain, SearchConfig(concurrency=1))
        assert isinstance(exc_info.value.__cause__, ArithmeticError)

    def test_search_when_worker_raises_in_pool_then_search_error(self, sample_pairs_chain, monkeypatch):
        def boom(chain, item, chunk_size):
            if item.index == 2:
                raise ArithmeticError("overflow")
            return original(chain, item, chunk_size)

        original = engine.evaluate_unit
        monkeypatch.setattr(engine, "evaluate_unit", boom)
        config = SearchConfig(concurrency=2, batch_size=2, executor="thread")
        with pytest.raises(SearchError, match="overflow"):
            search(sample_pairs_chain, config)

    def test_search_when_no_unit_evaluated_then_search_error(self, sample_pairs_chain, monkeypatch):
        monkeypatch.setattr(engine, "partition", lambda ranges, batch_size: iter(()))
        with pytest.raises(SearchError, match="without evaluating any work unit"):
            search(sample_pairs_chain, SearchConfig(concurrency=1))

    def test_search_when_cancel_event_set_then_cancelled(self, sample_pairs_chain):
        cancel = threading.Event()
        cancel.set()
        for concurrency in (1, 2):
            config = SearchConfig(concurrency=concurrency, executor="thread")
            with pytest.raises(SearchCancelledError):
                search(sample_pairs_chain, config, cancel_event=cancel)

    def test_search_when_cancel_event_set_mid_search_then_stops_dispatching(self, sample_pairs_chain):
        cancel = threading.Event()
        seen = []

        def on_progress(result):
            seen.append(result)
            cancel.set()

        config = SearchConfig(concurrency=1, batch_size=1)
        with pytest.raises(SearchCancelledError):
            search(sample_pairs_chain, config, cancel_event=cancel, progress=on_progress)
        assert len(seen) == 1

    def test_search_when_deadline_exceeded_then_cancelled(self, sample_pairs_chain, monkeypatch):
        original = engine.evaluate_unit

        def slow(chain, item, chunk_size):
            time.sleep(0.3)
            return original(chain, item, chunk_size)

        monkeypatch.setattr(engine, "evaluate_unit", slow)
        config = SearchConfig(concurrency=2, batch_size=1, executor="thread", deadline_s=0.05)
        with pytest.raises(SearchCancelledError, match="deadline"):
            search(sample_pairs_chain, config)

    def test_cancelled_error_when_caught_as_search_error_then_matches(self):
        assert issubclass(SearchCancelledError, SearchError)


class TestReporting:
    """Progress callbacks and timing records."""

    def test_search_when_progress_callback_then_called_per_unit(self, sample_pairs_chain):
        results = []
        config = SearchConfig(concurrency=2, batch_size=5, executor="thread")
        search(sample_pairs_chain, config, progress=results.append)
        assert len(results) == 6
        assert sorted(r.item.index for r in results) == list(range(6))

    def test_search_when_timing_log_then_records_units(self, sample_pairs_chain):
        timing = TimingLog()
        search(sample_pairs_chain, SearchConfig(concurrency=1, batch_size=10), timing=timing)
        assert len(timing.unit_timings) == 4
        assert timing.seeds_evaluated == 27
        assert "search" in timing.phase_timings

    def test_search_when_info_logging_then_reports_ranges(self, sample_pairs_chain, caplog):
        with caplog.at_level("INFO", logger="almanac_toolkit"):
            search(sample_pairs_chain, SearchConfig(concurrency=1, batch_size=5))
        assert "Range 1 of 2 (79 -> 93) = 46" in caplog.text
        assert "RESULT: 46" in caplog.text

    def test_search_when_info_logging_then_reports_each_unit(self, sample_pairs_chain, caplog):
        with caplog.at_level("INFO", logger="almanac_toolkit"):
            search(sample_pairs_chain, SearchConfig(concurrency=1, batch_size=5))
        unit_lines = [r for r in caplog.records if "unit #" in r.getMessage()]
        assert len(unit_lines) == 6
        assert all(r.levelname == "INFO" for r in unit_lines)
        assert "unit #1 of 6 (79 -> 84)" in caplog.text
