"""covmerge error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Coverage data
- 4xxx: Manifest
- 5xxx: Report
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003

    # Coverage data (3xxx)
    COVERAGE_LOAD_ERROR = 3001
    COVERAGE_INVALID_JSON = 3002
    COVERAGE_INVALID_RECORD = 3003
    COVERAGE_MAP_FINALIZED = 3004

    # Manifest (4xxx)
    MANIFEST_LOAD_ERROR = 4001
    MANIFEST_INVALID = 4002

    # Report (5xxx)
    REPORT_NOT_FOUND = 5001
    REPORT_MISSING_TOTAL = 5002


@dataclass(frozen=True, slots=True)
class CovMergeError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'COVERAGE_LOAD_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CovMergeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required argument: {field}",
            details={"field": field},
        )


class CoverageError(CovMergeError):
    """Errors loading or merging coverage data."""

    @classmethod
    def load_failed(cls, path: str, reason: str) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_LOAD_ERROR,
            message=f"error while loading {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_json(cls, path: str, reason: str) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_INVALID_JSON,
            message=f"error while loading {path}: invalid JSON ({reason})",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_record(cls, path: str, reason: str) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_INVALID_RECORD,
            message=f"Invalid file coverage object for {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def map_finalized(cls) -> "CoverageError":
        return cls(
            code=ErrorCode.COVERAGE_MAP_FINALIZED,
            message="Coverage map is finalized; no more records can be merged",
        )


class ManifestError(CovMergeError):
    """Errors reading the coverage manifest."""

    @classmethod
    def load_failed(cls, path: str, reason: str) -> "ManifestError":
        return cls(
            code=ErrorCode.MANIFEST_LOAD_ERROR,
            message=f"Failed to load coverage manifest {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid(cls, path: str, field: str, reason: str) -> "ManifestError":
        return cls(
            code=ErrorCode.MANIFEST_INVALID,
            message=f"Invalid coverage manifest {path}: '{field}' {reason}",
            details={"path": path, "field": field, "reason": reason},
        )


class ReportError(CovMergeError):
    """Errors reading a merged coverage report."""

    @classmethod
    def not_found(cls, path: str) -> "ReportError":
        return cls(
            code=ErrorCode.REPORT_NOT_FOUND,
            message=f"coverage summary file not found in path {path}",
            details={"path": path},
        )

    @classmethod
    def missing_total(cls, path: str) -> "ReportError":
        return cls(
            code=ErrorCode.REPORT_MISSING_TOTAL,
            message=f"total coverage summary not found in {path}",
            details={"path": path},
        )
