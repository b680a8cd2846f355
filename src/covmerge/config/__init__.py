"""Config module exports."""

from covmerge.config.loader import load_config
from covmerge.config.models import (
    CovMergeConfig,
    LoggingConfig,
    RemapConfig,
    ReportConfig,
)

__all__ = [
    "load_config",
    "CovMergeConfig",
    "LoggingConfig",
    "RemapConfig",
    "ReportConfig",
]
