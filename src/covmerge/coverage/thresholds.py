"""Coverage threshold checks.

Thresholds come from the ``coverage_threshold`` object of a coverage
manifest:

    {"coverage_threshold": {"perfile": false, "lines": 90, "branches": 80}}

With ``perfile`` unset the minimums apply to the aggregate summary; with it
set, every file's own summary is checked. Violations are reported, not raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from covmerge.core.errors import ManifestError
from covmerge.core.logging import get_logger
from covmerge.core.progress import status
from covmerge.coverage.models import CoverageMap, CoverageSummary, format_pct

log = get_logger("coverage.thresholds")


class CoverageThreshold(BaseModel):
    """Minimum percentage per metric; unset metrics are not checked."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    perfile: bool = Field(default=False, validation_alias=AliasChoices("perfile", "perFile"))
    lines: float | None = None
    branches: float | None = None
    functions: float | None = None
    statements: float | None = None

    def minimums(self) -> dict[str, float]:
        """Metric name → required percentage, for the metrics that are set."""
        return {
            metric: value
            for metric, value in (
                ("lines", self.lines),
                ("branches", self.branches),
                ("functions", self.functions),
                ("statements", self.statements),
            )
            if value is not None
        }


class CoverageManifest(BaseModel):
    """Post-processing manifest written next to the per-run coverage files."""

    model_config = ConfigDict(extra="ignore")

    removed_files: list[str] = Field(default_factory=list)
    all_files_executed: bool = False
    coverage_threshold: CoverageThreshold | None = None


def load_manifest(path: Path) -> CoverageManifest:
    """Load a manifest document (JSON or YAML).

    Raises:
        ManifestError: If the file cannot be read, parsed or validated.
    """
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ManifestError.load_failed(str(path), str(e)) from e
    except yaml.YAMLError as e:
        raise ManifestError.load_failed(str(path), str(e)) from e

    if not isinstance(data, dict):
        raise ManifestError.load_failed(str(path), "top-level value must be an object")
    try:
        return CoverageManifest.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ManifestError.invalid(str(path), field, err["msg"]) from e


@dataclass(frozen=True, slots=True)
class ThresholdViolation:
    """One metric below its required percentage."""

    metric: str
    actual: float
    required: float
    file: str | None = None

    @property
    def message(self) -> str:
        actual = format_pct(self.actual)
        required = format_pct(self.required)
        if self.file:
            return (
                f"ERROR: Coverage for {self.metric} ({actual}%) does not meet "
                f"threshold ({required}%) for {self.file}"
            )
        return (
            f"ERROR: Coverage for {self.metric} ({actual}%) does not meet "
            f"global threshold ({required}%)"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "actual": self.actual,
            "required": self.required,
            "file": self.file,
        }


def check_coverage(
    summary: CoverageSummary,
    thresholds: CoverageThreshold,
    file: str | None = None,
) -> list[ThresholdViolation]:
    """Compare one summary against the minimums and report each shortfall.

    Every violation is printed to stderr and logged.
    """
    log.debug(
        "checking_thresholds",
        thresholds=thresholds.minimums(),
        summary=summary.to_dict(),
        file=file,
    )
    violations: list[ThresholdViolation] = []
    for metric, required in thresholds.minimums().items():
        measured = summary.get(metric)
        if measured is None:
            continue
        if measured.pct < required:
            violation = ThresholdViolation(
                metric=metric, actual=measured.pct, required=required, file=file
            )
            status(violation.message, style="error")
            log.warning("threshold_violated", **violation.to_dict())
            violations.append(violation)
    return violations


def check_thresholds(
    coverage_map: CoverageMap,
    thresholds: CoverageThreshold,
) -> list[ThresholdViolation]:
    """Check the aggregate summary, or every file's summary when ``perfile`` is set."""
    if not thresholds.perfile:
        return check_coverage(coverage_map.get_coverage_summary(), thresholds)

    violations: list[ThresholdViolation] = []
    for path in coverage_map.files():
        summary = coverage_map.file_coverage_for(path).to_summary()
        violations.extend(check_coverage(summary, thresholds, path))
    return violations
