"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local covmerge package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of covmerge modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("covmerge"):
        del sys.modules[module_name]


def _loc(line: int, start: int = 0, end: int = 10) -> dict[str, Any]:
    return {"start": {"line": line, "column": start}, "end": {"line": line, "column": end}}


def build_record(
    path: str,
    line_hits: dict[int, int],
    branches: dict[int, list[int]] | None = None,
    functions: dict[int, int] | None = None,
) -> dict[str, Any]:
    """Istanbul record with one statement per line.

    Args:
        path: File path stored in the record.
        line_hits: Line → hit count of the statement on that line.
        branches: Line → hit counts of the branch paths on that line.
        functions: Declaration line → hit count.
    """
    statement_map = {}
    s = {}
    for i, (line, hits) in enumerate(sorted(line_hits.items())):
        statement_map[str(i)] = _loc(line)
        s[str(i)] = hits

    branch_map = {}
    b = {}
    for i, (line, hits) in enumerate(sorted((branches or {}).items())):
        branch_map[str(i)] = {
            "type": "if",
            "line": line,
            "loc": _loc(line),
            "locations": [_loc(line, 2 * j, 2 * j + 1) for j in range(len(hits))],
        }
        b[str(i)] = list(hits)

    fn_map = {}
    f = {}
    for i, (line, hits) in enumerate(sorted((functions or {}).items())):
        fn_map[str(i)] = {"name": f"fn{i}", "decl": _loc(line, 0, 5), "loc": _loc(line), "line": line}
        f[str(i)] = hits

    return {
        "path": path,
        "statementMap": statement_map,
        "fnMap": fn_map,
        "branchMap": branch_map,
        "s": s,
        "f": f,
        "b": b,
    }


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Factory for Istanbul records (see build_record)."""
    return build_record


@pytest.fixture
def write_coverage(tmp_path: Path) -> Callable[..., Path]:
    """Write a coverage-final.json document built from records; returns its path."""

    def _write(name: str, *records: dict[str, Any]) -> Path:
        target = tmp_path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({r["path"]: r for r in records}))
        return target

    return _write
