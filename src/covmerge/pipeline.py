"""The merge run: load → merge → map sources → report → check thresholds."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from covmerge.config.models import CovMergeConfig
from covmerge.core.errors import ConfigError
from covmerge.core.logging import clear_run_id, get_logger, set_run_id
from covmerge.core.progress import pluralize, status
from covmerge.coverage.merge import CoverageMerger
from covmerge.coverage.models import CoverageMap
from covmerge.coverage.parsers import load_document
from covmerge.coverage.remap import PathRemapper
from covmerge.coverage.report import execute_reports
from covmerge.coverage.sourcemaps import transform_coverage
from covmerge.coverage.thresholds import (
    CoverageManifest,
    ThresholdViolation,
    check_thresholds,
    load_manifest,
)

log = get_logger("pipeline")


def split_coverage_files(value: str) -> list[Path]:
    """Split a whitespace-separated coverage file list; paths are taken verbatim."""
    return [Path(item) for item in value.split()]


@dataclass(frozen=True, slots=True)
class MergeOptions:
    """Inputs of one merge run."""

    commit_dir: Path
    coverage_files: tuple[Path, ...]
    coverage_manifest: Path | None = None


@dataclass(slots=True)
class MergeResult:
    coverage_map: CoverageMap
    report_path: Path
    manifest: CoverageManifest | None = None
    violations: list[ThresholdViolation] = field(default_factory=list)

    @property
    def thresholds_met(self) -> bool:
        return not self.violations


async def run_merge(options: MergeOptions, config: CovMergeConfig | None = None) -> MergeResult:
    """Merge the coverage documents and write the reports.

    Documents are loaded and merged one at a time, in the given order. The
    first document that fails aborts the run before any report is written.
    The manifest is read after the reports, so a bad manifest still leaves the
    merged summary on disk.

    Raises:
        ConfigError: If no coverage files are given.
        CoverageError: If a coverage document cannot be loaded.
        ManifestError: If the manifest cannot be loaded.
    """
    config = config or CovMergeConfig()
    if not options.coverage_files:
        raise ConfigError.missing_required("coverageFiles")

    set_run_id()
    try:
        log.info(
            "merge_started",
            commit_dir=str(options.commit_dir),
            coverage_files=[str(p) for p in options.coverage_files],
        )

        remapper = None
        if config.remap.enabled:
            remapper = PathRemapper(config.remap.build_dir, config.remap.source_dir)
        merger = CoverageMerger(remapper)
        for path in options.coverage_files:
            document = load_document(path)
            merger.merge_document(document)
            log.info("coverage_loaded", path=str(path), records=len(document))
        coverage_map = merger.finalize()

        if config.sourcemaps.enabled:
            coverage_map = await transform_coverage(coverage_map)

        report_path = await execute_reports(coverage_map, options.commit_dir, config.report)
        status(
            f"Merged {pluralize(len(options.coverage_files), 'coverage file')} "
            f"into {report_path}",
            style="success",
        )

        result = MergeResult(coverage_map=coverage_map, report_path=report_path)
        if options.coverage_manifest is not None:
            result.manifest = load_manifest(options.coverage_manifest)
            thresholds = result.manifest.coverage_threshold
            if thresholds is not None:
                result.violations = check_thresholds(coverage_map, thresholds)

        log.info(
            "merge_completed",
            files=len(coverage_map),
            report=str(report_path),
            violations=len(result.violations),
        )
        return result
    finally:
        clear_run_id()
