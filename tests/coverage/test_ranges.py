"""Tests for coverage/ranges.py - uncovered line notation."""

from collections.abc import Callable
from typing import Any

import pytest

from covmerge.coverage.models import FileCoverage
from covmerge.coverage.ranges import uncovered_lines


def _uncovered(record: dict[str, Any]) -> str:
    fc = FileCoverage.from_dict(record)
    return uncovered_lines(fc.to_summary(), fc)


class TestUncoveredLines:
    """Tests for uncovered_lines."""

    def test_fully_covered_file_is_empty(self, make_record: Callable[..., dict[str, Any]]) -> None:
        assert _uncovered(make_record("a.js", {1: 1, 2: 3, 3: 1})) == ""

    def test_ranges_and_singles(self, make_record: Callable[..., dict[str, Any]]) -> None:
        hits = {line: 1 for line in range(1, 11)}
        for line in (3, 4, 5, 9):
            hits[line] = 0
        assert _uncovered(make_record("a.js", hits)) == "3-5,9"

    def test_single_first_line(self, make_record: Callable[..., dict[str, Any]]) -> None:
        assert _uncovered(make_record("a.js", {1: 0, 2: 1, 3: 1})) == "1"

    def test_trailing_range(self, make_record: Callable[..., dict[str, Any]]) -> None:
        assert _uncovered(make_record("a.js", {1: 1, 2: 0, 3: 0})) == "2-3"

    def test_gaps_in_line_numbers_do_not_split_ranges(
        self, make_record: Callable[..., dict[str, Any]]
    ) -> None:
        # Lines 4 and 8 are adjacent misses among the coverable lines
        assert _uncovered(make_record("a.js", {1: 1, 4: 0, 8: 0, 12: 1})) == "4-8"

    def test_all_missed(self, make_record: Callable[..., dict[str, Any]]) -> None:
        assert _uncovered(make_record("a.js", {1: 0, 2: 0})) == "1-2"

    def test_full_line_coverage_switches_to_branch_granularity(
        self, make_record: Callable[..., dict[str, Any]]
    ) -> None:
        record = make_record(
            "a.js",
            {1: 1, 2: 1, 3: 1, 4: 1},
            branches={2: [1, 1], 3: [1, 1, 1, 0, 0]},
        )
        # Line 3 has 3 of 5 paths covered (60%)
        assert _uncovered(record) == "3"

    def test_branch_granularity_all_branches_taken(
        self, make_record: Callable[..., dict[str, Any]]
    ) -> None:
        record = make_record("a.js", {1: 1, 2: 1}, branches={1: [1, 2]})
        assert _uncovered(record) == ""

    def test_partial_lines_ignore_branches(
        self, make_record: Callable[..., dict[str, Any]]
    ) -> None:
        record = make_record("a.js", {1: 1, 2: 0}, branches={1: [0, 0]})
        assert _uncovered(record) == "2"

    @pytest.mark.parametrize(
        ("branch_hits", "expected"),
        [
            ({5: [0, 0], 6: [0, 1], 9: [1, 1]}, "5-6"),
            ({5: [1, 1], 6: [0, 1], 9: [0, 0]}, "6-9"),
        ],
    )
    def test_branch_ranges(
        self,
        make_record: Callable[..., dict[str, Any]],
        branch_hits: dict[int, list[int]],
        expected: str,
    ) -> None:
        record = make_record("a.js", {1: 1}, branches=branch_hits)
        assert _uncovered(record) == expected

    def test_empty_file(self) -> None:
        fc = FileCoverage(path="empty.js")
        assert uncovered_lines(fc.to_summary(), fc) == ""
