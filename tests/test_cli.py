"""
Tests for the almanac-search command-line entry point.
"""

import io

import pytest

from almanac_toolkit.cli import EXIT_FAILURE, EXIT_OK, EXIT_PARSE_ERROR, main


def _run(*argv):
    out = io.StringIO()
    code = main(list(argv), out=out)
    return code, out.getvalue()


class TestCli:
    """Tests for main()."""

    def test_main_when_part_1_then_prints_35(self, sample_file):
        code, output = _run(str(sample_file), "--part", "1")
        assert code == EXIT_OK
        assert "Seed ranges: 4" in output
        assert "RESULT: 35 " in output

    def test_main_when_part_2_thread_pool_then_prints_46(self, sample_file):
        code, output = _run(
            str(sample_file), "--part", "2", "--workers", "3",
            "--batch-size", "4", "--executor", "thread",
        )
        assert code == EXIT_OK
        assert "Total seeds: 27" in output
        assert "RESULT: 46 " in output

    def test_main_when_ranges_strategy_then_prints_46(self, sample_file):
        code, output = _run(str(sample_file), "--strategy", "ranges")
        assert code == EXIT_OK
        assert "RESULT: 46 " in output

    def test_main_when_trace_then_writes_lookup_lines(self, sample_file):
        code, output = _run(str(sample_file), "--part", "1", "--trace")
        assert code == EXIT_OK
        assert "seed: 79 soil: 81 fertilizer: 81" in output
        assert "location: 35" in output

    def test_main_when_estimate_and_timing_then_prints_reports(self, sample_file):
        code, output = _run(str(sample_file), "--part", "2", "--workers", "1", "--estimate", "--timing")
        assert code == EXIT_OK
        assert "Est time for solution" in output
        assert "Search Timing Summary" in output

    def test_main_when_parse_error_then_exit_2(self, tmp_path, caplog):
        path = tmp_path / "bad.txt"
        path.write_text("seeds: 1 2\n\nseed-to-soil map:\n1 2\n")
        code, _ = _run(str(path))
        assert code == EXIT_PARSE_ERROR
        assert "line 4" in caplog.text

    def test_main_when_missing_file_then_exit_1(self, tmp_path):
        code, _ = _run(str(tmp_path / "missing.txt"))
        assert code == EXIT_FAILURE

    def test_main_when_empty_seeds_then_exit_1(self, tmp_path, caplog):
        path = tmp_path / "empty.txt"
        path.write_text("seeds:\n\nseed-to-soil map:\n1 2 3\n")
        code, _ = _run(str(path), "--workers", "1")
        assert code == EXIT_FAILURE
        assert "no seed ranges" in caplog.text

    def test_main_when_invalid_workers_then_exit_1(self, sample_file):
        code, _ = _run(str(sample_file), "--workers", "-2")
        assert code == EXIT_FAILURE

    def test_main_when_zero_workers_then_exit_1(self, sample_file, caplog):
        code, output = _run(str(sample_file), "--workers", "0")
        assert code == EXIT_FAILURE
        assert "concurrency must be at least 1" in caplog.text
        assert "RESULT" not in output

    def test_main_when_file_not_utf8_then_exit_2(self, tmp_path, caplog):
        path = tmp_path / "binary.txt"
        path.write_bytes(b"seeds: 1 2\n\nseed-to-soil map:\n\xff 2 3\n")
        code, _ = _run(str(path))
        assert code == EXIT_PARSE_ERROR
        assert "not valid UTF-8" in caplog.text

    def test_main_when_bad_part_then_argparse_exits(self, sample_file):
        with pytest.raises(SystemExit):
            main([str(sample_file), "--part", "3"], out=io.StringIO())
