"""covmerge merge command - merge coverage documents and write the summary."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import click

from covmerge.cli.utils import fail, load_cli_config
from covmerge.config.constants import EXIT_FAILURE
from covmerge.core.errors import ConfigError, CovMergeError
from covmerge.core.progress import pluralize, status
from covmerge.pipeline import MergeOptions, run_merge, split_coverage_files


@click.command()
@click.option(
    "--commit-dir",
    "--commitDir",
    "commit_dir",
    default=None,
    help="Directory the merged summary is written to.",
)
@click.option(
    "--coverage-files",
    "--coverageFiles",
    "coverage_files",
    default=None,
    help="Space-separated list of coverage-final.json documents.",
)
@click.option(
    "--coverage-manifest",
    "--coverageManifest",
    "coverage_manifest",
    default=None,
    type=click.Path(path_type=Path),
    help="Manifest (JSON or YAML) with an optional coverage_threshold.",
)
@click.option("--output-file", default=None, help="Name of the merged summary file.")
@click.option(
    "--enforce-thresholds",
    is_flag=True,
    default=False,
    help="Exit with failure when a coverage threshold is not met.",
)
@click.pass_context
def merge_command(
    ctx: click.Context,
    commit_dir: str | None,
    coverage_files: str | None,
    coverage_manifest: Path | None,
    output_file: str | None,
    enforce_thresholds: bool,
) -> None:
    """Merge per-run coverage into COMMITDIR/coverage-merged.json.

    Prints a coverage table to stdout. Threshold violations from the manifest
    are reported on stderr and do not fail the run unless enforcement is on.
    """
    if not commit_dir or not commit_dir.strip():
        fail(ConfigError.missing_required("commitDir"))
    if not coverage_files or not coverage_files.strip():
        fail(ConfigError.missing_required("coverageFiles"))

    overrides: dict[str, Any] = {}
    if output_file is not None:
        overrides["report"] = {"output_file": output_file}
    if enforce_thresholds:
        overrides["thresholds"] = {"enforce": True}
    config = load_cli_config(ctx, **overrides)

    options = MergeOptions(
        commit_dir=Path(commit_dir),
        coverage_files=tuple(split_coverage_files(coverage_files)),
        coverage_manifest=coverage_manifest,
    )
    try:
        result = asyncio.run(run_merge(options, config))
    except CovMergeError as e:
        fail(e)

    if result.violations and config.thresholds.enforce:
        status(
            f"{pluralize(len(result.violations), 'coverage threshold')} not met",
            style="error",
        )
        raise SystemExit(EXIT_FAILURE)
