"""covmerge total command - print the total entry of a merged summary."""

import json
from pathlib import Path

import click

from covmerge.cli.utils import fail, load_cli_config
from covmerge.core.errors import ReportError
from covmerge.coverage.report import read_total_summary


@click.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def total_command(ctx: click.Context, path: Path, as_json: bool) -> None:
    """Show the total coverage of a merged summary.

    PATH is the summary file, or the commit directory holding it.
    """
    config = load_cli_config(ctx)
    try:
        total = read_total_summary(path, report_name=config.report.output_file)
    except ReportError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(total))
        return
    for metric, values in total.items():
        click.echo(f"{metric}: {values['pct']}% ({values['covered']}/{values['total']})")
