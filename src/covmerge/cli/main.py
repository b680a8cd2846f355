"""covmerge CLI - covmerge command."""

import click

from covmerge import __version__
from covmerge.cli.discover import discover_command
from covmerge.cli.merge import merge_command
from covmerge.cli.total import total_command
from covmerge.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="covmerge")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """covmerge - merge per-run Istanbul coverage into one summary."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(merge_command, name="merge")
cli.add_command(discover_command, name="discover")
cli.add_command(total_command, name="total")


if __name__ == "__main__":
    cli()
