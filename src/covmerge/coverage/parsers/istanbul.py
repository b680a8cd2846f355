"""Istanbul/NYC JSON format parser.

Istanbul (used by Jest, Vitest, NYC) writes per-file detailed coverage to
coverage-final.json:

{
  "/path/to/file.js": {
    "path": "/path/to/file.js",
    "statementMap": { "0": {"start": {"line": 1, "column": 0}, "end": ...}, ... },
    "s": { "0": 1, "1": 0, ... },  // statement hit counts
    "branchMap": { "0": {"type": "if", "locations": [...], "line": 5}, ... },
    "b": { "0": [1, 0], ... },  // branch hit counts per location
    "fnMap": { "0": {"name": "foo", "decl": {...}, "loc": {...}}, ... },
    "f": { "0": 1, ... }  // function hit counts
  }
}
"""

import json
from pathlib import Path
from typing import Any

from covmerge.core.errors import CoverageError
from covmerge.coverage.models import FileCoverage


class IstanbulParser:
    """Parser for Istanbul coverage-final.json documents."""

    def parse(self, path: Path) -> dict[str, FileCoverage]:
        """Parse a coverage document into records keyed as in the document.

        Raises:
            CoverageError: If the file cannot be read, is not JSON, or holds
                an invalid record.
        """
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CoverageError.invalid_json(str(path), str(e)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise CoverageError.load_failed(str(path), str(e)) from e

        return self.parse_data(data, source=str(path))

    def parse_data(self, data: Any, *, source: str = "<memory>") -> dict[str, FileCoverage]:
        if not isinstance(data, dict):
            raise CoverageError.load_failed(source, "top-level value must be an object")

        records: dict[str, FileCoverage] = {}
        for key, record_data in data.items():
            try:
                record = FileCoverage.from_dict(record_data)
            except CoverageError as e:
                raise CoverageError.load_failed(source, f"{key}: {e.message}") from e
            records[key] = record
        return records
