"""covmerge - merge per-run Istanbul coverage into one summary."""

__version__ = "0.1.0"
