"""covmerge discover command - list coverage documents under a directory."""

from pathlib import Path

import click

from covmerge.cli.utils import load_cli_config
from covmerge.config.constants import EXIT_FAILURE
from covmerge.core.progress import status
from covmerge.coverage.discovery import find_coverage_files


@click.command()
@click.argument("commit_dir", type=click.Path(path_type=Path))
@click.option("--name", "file_name", default=None, help="Coverage file name to look for.")
@click.pass_context
def discover_command(ctx: click.Context, commit_dir: Path, file_name: str | None) -> None:
    """Print coverage documents under COMMIT_DIR, space-separated.

    The output can be passed straight to ``covmerge merge --coverageFiles``.
    """
    config = load_cli_config(ctx)
    name = file_name or config.discovery.coverage_file_name
    files = find_coverage_files(commit_dir, name)
    if not files:
        status(f"no coverage files found in {commit_dir}", style="error")
        raise SystemExit(EXIT_FAILURE)
    click.echo(" ".join(str(p) for p in files))
