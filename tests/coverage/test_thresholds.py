"""Tests for coverage/thresholds.py.

Covers:
- CoverageThreshold / CoverageManifest models
- load_manifest (JSON and YAML)
- check_coverage messages and strict comparison
- check_thresholds global vs per-file mode
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from covmerge.core.errors import ErrorCode, ManifestError
from covmerge.coverage.models import CoverageMap, CoverageSummary, FileCoverage, Metric
from covmerge.coverage.thresholds import (
    CoverageManifest,
    CoverageThreshold,
    ThresholdViolation,
    check_coverage,
    check_thresholds,
    load_manifest,
)

RecordFactory = Callable[..., dict[str, Any]]


def _summary(lines_covered: int, lines_total: int) -> CoverageSummary:
    return CoverageSummary(lines=Metric(total=lines_total, covered=lines_covered))


class TestModels:
    """Tests for the manifest models."""

    def test_defaults(self) -> None:
        manifest = CoverageManifest()
        assert manifest.coverage_threshold is None
        assert manifest.removed_files == []
        assert manifest.all_files_executed is False

    def test_perfile_alias(self) -> None:
        assert CoverageThreshold.model_validate({"perFile": True}).perfile is True
        assert CoverageThreshold.model_validate({"perfile": True}).perfile is True

    def test_minimums_only_lists_set_metrics(self) -> None:
        threshold = CoverageThreshold(lines=90, functions=50)
        assert threshold.minimums() == {"lines": 90, "functions": 50}

    def test_values_above_100_accepted(self) -> None:
        assert CoverageThreshold.model_validate({"lines": 101}).lines == 101

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(ValueError):
            CoverageThreshold.model_validate({"lines": "high"})


class TestLoadManifest:
    """Tests for load_manifest."""

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text(
            '{"removed_files": ["a.js"], "all_files_executed": true,'
            ' "coverage_threshold": {"perfile": true, "lines": 80}}'
        )
        manifest = load_manifest(path)
        assert manifest.removed_files == ["a.js"]
        assert manifest.all_files_executed is True
        assert manifest.coverage_threshold == CoverageThreshold(perfile=True, lines=80)

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.yaml"
        path.write_text("coverage_threshold:\n  branches: 70\n")
        manifest = load_manifest(path)
        assert manifest.coverage_threshold is not None
        assert manifest.coverage_threshold.branches == 70

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text("")
        assert load_manifest(path) == CoverageManifest()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(tmp_path / "nope.json")
        assert exc_info.value.code == ErrorCode.MANIFEST_LOAD_ERROR

    def test_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text("{coverage_threshold: [")
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(path)
        assert exc_info.value.code == ErrorCode.MANIFEST_LOAD_ERROR

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text("[1, 2]")
        with pytest.raises(ManifestError):
            load_manifest(path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text('{"coverage_threshold": {"lines": "high"}}')
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(path)
        assert exc_info.value.code == ErrorCode.MANIFEST_INVALID
        assert "coverage_threshold.lines" in exc_info.value.message


class TestCheckCoverage:
    """Tests for check_coverage."""

    def test_violation_below_minimum(self, capsys: pytest.CaptureFixture[str]) -> None:
        violations = check_coverage(_summary(17, 20), CoverageThreshold(lines=90))
        assert violations == [ThresholdViolation(metric="lines", actual=85, required=90)]
        message = violations[0].message
        assert message == "ERROR: Coverage for lines (85%) does not meet global threshold (90%)"
        assert message in capsys.readouterr().err

    def test_no_violation_above_minimum(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert check_coverage(_summary(17, 20), CoverageThreshold(lines=80)) == []
        assert "ERROR" not in capsys.readouterr().err

    def test_equal_is_not_a_violation(self) -> None:
        assert check_coverage(_summary(17, 20), CoverageThreshold(lines=85)) == []

    def test_per_file_message(self) -> None:
        violations = check_coverage(_summary(1, 3), CoverageThreshold(lines=50), file="src/a.js")
        assert violations[0].message == (
            "ERROR: Coverage for lines (33.33%) does not meet threshold (50%) for src/a.js"
        )

    def test_every_set_metric_checked(self) -> None:
        summary = CoverageSummary(
            lines=Metric(10, 5),
            statements=Metric(10, 5),
            functions=Metric(2, 2),
            branches=Metric(4, 1),
        )
        thresholds = CoverageThreshold(lines=60, branches=30, functions=100, statements=40)
        violations = check_coverage(summary, thresholds)
        assert [v.metric for v in violations] == ["lines", "branches"]

    def test_unreachable_minimum_is_a_violation(self) -> None:
        violations = check_coverage(_summary(20, 20), CoverageThreshold(lines=101))
        assert violations[0].message == (
            "ERROR: Coverage for lines (100%) does not meet global threshold (101%)"
        )

    def test_unset_thresholds_check_nothing(self) -> None:
        assert check_coverage(_summary(0, 10), CoverageThreshold()) == []


class TestCheckThresholds:
    """Tests for check_thresholds."""

    @pytest.fixture
    def coverage_map(self, make_record: RecordFactory) -> CoverageMap:
        return CoverageMap(
            {
                "a.js": FileCoverage.from_dict(make_record("a.js", {1: 1, 2: 1, 3: 1, 4: 1})),
                "b.js": FileCoverage.from_dict(make_record("b.js", {1: 1, 2: 0})),
            }
        )

    def test_global_mode_uses_aggregate(self, coverage_map: CoverageMap) -> None:
        # 5 of 6 lines covered: 83.33%
        violations = check_thresholds(coverage_map, CoverageThreshold(lines=80))
        assert violations == []
        violations = check_thresholds(coverage_map, CoverageThreshold(lines=90))
        assert [(v.file, v.actual) for v in violations] == [(None, 83.33)]

    def test_per_file_mode(self, coverage_map: CoverageMap) -> None:
        violations = check_thresholds(coverage_map, CoverageThreshold(perfile=True, lines=80))
        assert [(v.file, v.actual) for v in violations] == [("b.js", 50)]
