"""Entry point for ``python -m covmerge``."""

from covmerge.cli.main import cli

if __name__ == "__main__":
    cli()
