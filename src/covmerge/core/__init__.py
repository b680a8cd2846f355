"""Core module exports."""

from covmerge.core.errors import (
    ConfigError,
    CovMergeError,
    CoverageError,
    ErrorCode,
    ManifestError,
    ReportError,
)
from covmerge.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from covmerge.core.progress import status

__all__ = [
    # Errors
    "ConfigError",
    "CovMergeError",
    "CoverageError",
    "ErrorCode",
    "ManifestError",
    "ReportError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "status",
]
