"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI options)
2. Environment variables (COVMERGE__SECTION__KEY)
3. Repo YAML (.covmerge.yaml in the working directory)
4. Global YAML (~/.config/covmerge/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    COVMERGE__<SECTION>__<KEY>=<VALUE>

Examples:
    COVMERGE__LOGGING__LEVEL=DEBUG
    COVMERGE__REPORT__OUTPUT_FILE=coverage-summary.json
    COVMERGE__REMAP__BUILD_DIR=dist
    COVMERGE__THRESHOLDS__ENFORCE=true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from covmerge.config.constants import COVERAGE_FILE_NAME, DEFAULT_OUTPUT_FILE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVMERGE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG also logs every threshold and summary checked.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ReportConfig(BaseModel):
    """Report output configuration.

    Env vars:
        COVMERGE__REPORT__OUTPUT_FILE: Name of the merged JSON summary
        COVMERGE__REPORT__TEXT_SUMMARY: Print the text table to stdout
        COVMERGE__REPORT__MAX_COLS: Width of the text table
    """

    output_file: str = Field(
        default=DEFAULT_OUTPUT_FILE,
        description="File name of the JSON summary, relative to the commit directory.",
    )
    text_summary: bool = Field(
        default=True,
        description="Render the human-readable coverage table on stdout.",
    )
    max_cols: int | None = Field(
        default=None,
        description="Console width for the text table. Terminal width when unset.",
    )

    @field_validator("output_file")
    @classmethod
    def validate_output_file(cls, v: str) -> str:
        if not v or Path(v).is_absolute():
            raise ValueError(f"Output file must be a relative file name: {v!r}")
        return v

    @field_validator("max_cols")
    @classmethod
    def validate_max_cols(cls, v: int | None) -> int | None:
        if v is not None and v < 40:
            raise ValueError(f"max_cols must be at least 40, got {v}")
        return v


class RemapConfig(BaseModel):
    """Build-output to source path remapping.

    Env vars:
        COVMERGE__REMAP__ENABLED: Apply remapping to every record
        COVMERGE__REMAP__BUILD_DIR: Build output directory segment
        COVMERGE__REMAP__SOURCE_DIR: Source directory segment that replaces it
    """

    enabled: bool = Field(
        default=True,
        description="Rewrite packages/<name>/<build_dir>/ paths to packages/<name>/<source_dir>/.",
    )
    build_dir: str = Field(default="build", description="Build output directory segment.")
    source_dir: str = Field(default="src", description="Source directory segment.")

    @field_validator("build_dir", "source_dir")
    @classmethod
    def validate_segment(cls, v: str) -> str:
        if not v or "/" in v:
            raise ValueError(f"Directory segment must be a single path component: {v!r}")
        return v


class ThresholdConfig(BaseModel):
    """Threshold checking behaviour.

    Env vars:
        COVMERGE__THRESHOLDS__ENFORCE: Fail the run on threshold violations
    """

    enforce: bool = Field(
        default=False,
        description="Exit with a failure status when a threshold is violated. "
        "Off by default: violations are reported but advisory.",
    )


class DiscoveryConfig(BaseModel):
    """Coverage file discovery.

    Env vars:
        COVMERGE__DISCOVERY__COVERAGE_FILE_NAME: File name to look for
    """

    coverage_file_name: str = Field(
        default=COVERAGE_FILE_NAME,
        description="Per-run coverage document name searched under a commit directory.",
    )


class SourceMapConfig(BaseModel):
    """Source map transformation.

    Env vars:
        COVMERGE__SOURCEMAPS__ENABLED: Map records with an inputSourceMap back to sources
    """

    enabled: bool = Field(
        default=True,
        description="Translate records carrying an inline inputSourceMap to original sources.",
    )


class CovMergeConfig(BaseModel):
    """Root configuration for covmerge.

    All settings can be configured via:
    1. Environment variables: COVMERGE__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    remap: RemapConfig = Field(default_factory=RemapConfig)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    sourcemaps: SourceMapConfig = Field(default_factory=SourceMapConfig)
