"""Configuration constants.

Values here are conventions of the coverage tooling around covmerge and are
NOT user-configurable. For configurable values, see models.py.
"""

DEFAULT_OUTPUT_FILE = "coverage-merged.json"
"""Name of the merged JSON summary written into the commit directory."""

COVERAGE_FILE_NAME = "coverage-final.json"
"""Name of the per-run Istanbul coverage document looked up by discovery."""

TOTAL_KEY = "total"
"""Key of the aggregate entry in the merged JSON summary."""

METRICS = ("lines", "statements", "functions", "branches")
"""Summary metrics, in the order they are serialized."""

# =============================================================================
# Process exit codes
# =============================================================================

EXIT_FAILURE = -1
"""Any fatal condition (missing inputs, unreadable coverage data)."""
