"""CLI utilities."""

from pathlib import Path
from typing import Any, NoReturn

import click

from covmerge.config.constants import EXIT_FAILURE
from covmerge.config.loader import load_config
from covmerge.config.models import CovMergeConfig
from covmerge.core.errors import CovMergeError
from covmerge.core.logging import configure_logging, get_logger
from covmerge.core.progress import status

log = get_logger("cli")


def fail(error: CovMergeError) -> NoReturn:
    """Report a fatal error on stderr and exit with EXIT_FAILURE."""
    log.error("command_failed", **error.to_dict())
    status(error.message, style="error")
    raise SystemExit(EXIT_FAILURE)


def load_cli_config(
    ctx: click.Context, work_dir: Path | None = None, **overrides: Any
) -> CovMergeConfig:
    """Load configuration and apply its logging section.

    ``-v`` keeps DEBUG logging regardless of the configured level.

    Raises:
        SystemExit: With EXIT_FAILURE when the configuration is invalid.
    """
    try:
        config = load_config(work_dir, **overrides)
    except CovMergeError as e:
        fail(e)
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    if not verbose:
        configure_logging(config=config.logging)
    return config
