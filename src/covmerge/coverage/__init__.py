"""Istanbul coverage merging, reporting and threshold checks.

Usage:
    from covmerge.coverage import load_document, merge_documents, execute_reports

    documents = [load_document(p) for p in paths]
    coverage_map = merge_documents(documents, remapper=PathRemapper())
    await execute_reports(coverage_map, commit_dir, config.report)
"""

from covmerge.coverage.discovery import find_coverage_files
from covmerge.coverage.merge import CoverageMerger, merge_documents
from covmerge.coverage.models import (
    BranchLineCoverage,
    CoverageMap,
    CoverageSummary,
    FileCoverage,
    Metric,
    percent,
)
from covmerge.coverage.parsers import IstanbulParser, load_document
from covmerge.coverage.ranges import uncovered_lines
from covmerge.coverage.remap import PathRemapper, remap_file_coverage, remap_path
from covmerge.coverage.report import (
    JsonSummaryWriter,
    execute_reports,
    read_total_summary,
    render_text_summary,
    write_json_summary,
)
from covmerge.coverage.sourcemaps import apply_source_maps, transform_coverage
from covmerge.coverage.thresholds import (
    CoverageManifest,
    CoverageThreshold,
    ThresholdViolation,
    check_coverage,
    check_thresholds,
    load_manifest,
)

__all__ = [
    # Models
    "BranchLineCoverage",
    "CoverageMap",
    "CoverageSummary",
    "FileCoverage",
    "Metric",
    "percent",
    # Loading
    "IstanbulParser",
    "find_coverage_files",
    "load_document",
    # Merging
    "CoverageMerger",
    "PathRemapper",
    "merge_documents",
    "remap_file_coverage",
    "remap_path",
    "apply_source_maps",
    "transform_coverage",
    # Reporting
    "JsonSummaryWriter",
    "execute_reports",
    "read_total_summary",
    "render_text_summary",
    "uncovered_lines",
    "write_json_summary",
    # Thresholds
    "CoverageManifest",
    "CoverageThreshold",
    "ThresholdViolation",
    "check_coverage",
    "check_thresholds",
    "load_manifest",
]
