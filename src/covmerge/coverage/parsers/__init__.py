"""Coverage document loading.

Only the Istanbul JSON format is consumed; documents are loaded one at a time
so that a failure is attributed to exactly one input.
"""

from pathlib import Path

from covmerge.coverage.models import FileCoverage

from .istanbul import IstanbulParser

_PARSER = IstanbulParser()

__all__ = [
    "IstanbulParser",
    "load_document",
]


def load_document(path: Path) -> dict[str, FileCoverage]:
    """Load one coverage-data document.

    Args:
        path: Path to an Istanbul coverage JSON file.

    Returns:
        Records keyed by file path, in document order.

    Raises:
        CoverageError: If the document cannot be read or parsed.
    """
    return _PARSER.parse(path)
