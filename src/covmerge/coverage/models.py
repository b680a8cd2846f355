"""Istanbul coverage data model.

A ``FileCoverage`` mirrors one entry of an Istanbul ``coverage-final.json``
document: location tables keyed by string index (``statementMap``, ``fnMap``,
``branchMap``) and the matching hit-count tables (``s``, ``f``, ``b``).
Summaries are derived on demand and never stored.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from covmerge.config.constants import METRICS
from covmerge.core.errors import CoverageError

_REQUIRED_KEYS = ("path", "statementMap", "fnMap", "branchMap", "s", "f", "b")


def percent(covered: int, total: int) -> float:
    """Coverage percentage floored to two decimals; 100 when nothing is coverable."""
    if total > 0:
        return math.floor(1000 * 100 * covered / total / 10) / 100
    return 100.0


def format_pct(pct: float) -> str:
    """Render a percentage the way the JSON summary does (85, 85.71)."""
    return str(int(pct)) if float(pct).is_integer() else str(pct)


@dataclass(frozen=True, slots=True)
class Metric:
    """Covered/total counts for one metric."""

    total: int = 0
    covered: int = 0
    skipped: int = 0

    @property
    def pct(self) -> float:
        return percent(self.covered, self.total)

    @classmethod
    def from_hits(cls, hits: Iterable[int]) -> Metric:
        values = list(hits)
        return cls(total=len(values), covered=sum(1 for v in values if v > 0))

    def __add__(self, other: Metric) -> Metric:
        return Metric(
            total=self.total + other.total,
            covered=self.covered + other.covered,
            skipped=self.skipped + other.skipped,
        )

    def to_dict(self) -> dict[str, Any]:
        pct = self.pct
        return {
            "total": self.total,
            "covered": self.covered,
            "skipped": self.skipped,
            "pct": int(pct) if pct.is_integer() else pct,
        }


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Read-only per-metric snapshot of a file or of the whole map."""

    lines: Metric = field(default_factory=Metric)
    statements: Metric = field(default_factory=Metric)
    functions: Metric = field(default_factory=Metric)
    branches: Metric = field(default_factory=Metric)

    def is_empty(self) -> bool:
        """True when the file has no coverable lines."""
        return self.lines.total == 0

    def get(self, metric: str) -> Metric | None:
        """Look up a metric by name; None for names that are not metrics."""
        if metric not in METRICS:
            return None
        return getattr(self, metric)  # type: ignore[no-any-return]

    def merge(self, other: CoverageSummary) -> CoverageSummary:
        return CoverageSummary(
            lines=self.lines + other.lines,
            statements=self.statements + other.statements,
            functions=self.functions + other.functions,
            branches=self.branches + other.branches,
        )

    def to_dict(self) -> dict[str, Any]:
        return {metric: getattr(self, metric).to_dict() for metric in METRICS}


@dataclass(frozen=True, slots=True)
class BranchLineCoverage:
    """Branch paths recorded on a single source line."""

    covered: int
    total: int

    @property
    def coverage(self) -> float:
        # A line with no recorded paths is never fully covered
        if self.total == 0:
            return math.nan
        return self.covered / self.total * 100


def _check_hits(path: str, table: str, hits: Any) -> None:
    if isinstance(hits, bool) or not isinstance(hits, int) or hits < 0:
        raise CoverageError.invalid_record(
            path, f"hit counts in '{table}' must be non-negative integers, got {hits!r}"
        )


def _sort_key(index: str) -> tuple[int, int | str]:
    return (0, int(index)) if index.isdigit() else (1, index)


@dataclass(slots=True)
class FileCoverage:
    """Coverage record for one source file.

    Tables are keyed by the string indices used in the JSON document so that
    records for the same file from different runs line up index by index.
    """

    path: str
    statement_map: dict[str, Any] = field(default_factory=dict)
    fn_map: dict[str, Any] = field(default_factory=dict)
    branch_map: dict[str, Any] = field(default_factory=dict)
    s: dict[str, int] = field(default_factory=dict)
    f: dict[str, int] = field(default_factory=dict)
    b: dict[str, list[int]] = field(default_factory=dict)
    all: bool = False  # placeholder for a file no test loaded
    input_source_map: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FileCoverage:
        """Build a record from its JSON form, validating the structure.

        Raises:
            CoverageError: If required keys are missing or hit counts are invalid.
        """
        if not isinstance(data, Mapping):
            raise CoverageError.invalid_record("<unknown>", "record must be an object")
        missing = [key for key in _REQUIRED_KEYS if key not in data]
        path = data.get("path")
        if missing:
            raise CoverageError.invalid_record(
                str(path or "<unknown>"), f"missing keys {', '.join(missing)}"
            )
        if not isinstance(path, str) or not path:
            raise CoverageError.invalid_record("<unknown>", "'path' must be a non-empty string")

        for key in _REQUIRED_KEYS[1:]:
            if not isinstance(data[key], Mapping):
                raise CoverageError.invalid_record(path, f"'{key}' must be an object")
        for hits in data["s"].values():
            _check_hits(path, "s", hits)
        for hits in data["f"].values():
            _check_hits(path, "f", hits)
        for counts in data["b"].values():
            if not isinstance(counts, list):
                raise CoverageError.invalid_record(path, "'b' entries must be arrays")
            for hits in counts:
                _check_hits(path, "b", hits)

        source_map = data.get("inputSourceMap")
        return cls(
            path=path,
            statement_map=copy.deepcopy(dict(data["statementMap"])),
            fn_map=copy.deepcopy(dict(data["fnMap"])),
            branch_map=copy.deepcopy(dict(data["branchMap"])),
            s=dict(data["s"]),
            f=dict(data["f"]),
            b={k: list(v) for k, v in data["b"].items()},
            all=bool(data.get("all", False)),
            input_source_map=copy.deepcopy(source_map) if isinstance(source_map, Mapping) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "statementMap": self.statement_map,
            "fnMap": self.fn_map,
            "branchMap": self.branch_map,
            "s": self.s,
            "f": self.f,
            "b": self.b,
        }
        if self.all:
            data["all"] = True
        if self.input_source_map is not None:
            data["inputSourceMap"] = self.input_source_map
        return data

    def copy(self) -> FileCoverage:
        return FileCoverage(
            path=self.path,
            statement_map=copy.deepcopy(self.statement_map),
            fn_map=copy.deepcopy(self.fn_map),
            branch_map=copy.deepcopy(self.branch_map),
            s=dict(self.s),
            f=dict(self.f),
            b={k: list(v) for k, v in self.b.items()},
            all=self.all,
            input_source_map=copy.deepcopy(self.input_source_map),
        )

    def merge(self, other: FileCoverage) -> None:
        """Add another run's hits for the same file into this record.

        Hit counts are summed index by index. Indices only the other record
        knows about are copied over together with their locations.
        """
        if other.all:
            return
        if self.all:
            replacement = other.copy()
            self.statement_map = replacement.statement_map
            self.fn_map = replacement.fn_map
            self.branch_map = replacement.branch_map
            self.s = replacement.s
            self.f = replacement.f
            self.b = replacement.b
            self.all = False
            self.input_source_map = replacement.input_source_map
            return

        for index, hits in other.s.items():
            if index in self.s:
                self.s[index] += hits
            else:
                self.s[index] = hits
                self.statement_map[index] = copy.deepcopy(other.statement_map.get(index))
        for index, hits in other.f.items():
            if index in self.f:
                self.f[index] += hits
            else:
                self.f[index] = hits
                self.fn_map[index] = copy.deepcopy(other.fn_map.get(index))
        for index, counts in other.b.items():
            mine = self.b.get(index)
            if mine is None:
                self.b[index] = list(counts)
                self.branch_map[index] = copy.deepcopy(other.branch_map.get(index))
                continue
            for i, hits in enumerate(counts):
                if i < len(mine):
                    mine[i] += hits
                else:
                    mine.append(hits)

    def get_line_coverage(self) -> dict[int, int]:
        """Line number → highest hit count of the statements starting on it.

        Returned in ascending line order.
        """
        lines: dict[int, int] = {}
        for index, hits in self.s.items():
            location = self.statement_map.get(index) or {}
            line = location.get("start", {}).get("line")
            if line is None:
                continue
            previous = lines.get(line)
            if previous is None or previous < hits:
                lines[line] = hits
        return dict(sorted(lines.items()))

    def get_branch_coverage_by_line(self) -> dict[int, BranchLineCoverage]:
        """Line number → branch paths covered/total on that line, ascending."""
        paths: dict[int, list[int]] = {}
        for index in sorted(self.branch_map, key=_sort_key):
            meta = self.branch_map[index] or {}
            line = meta.get("line") or meta.get("loc", {}).get("start", {}).get("line")
            if line is None:
                continue
            paths.setdefault(line, []).extend(self.b.get(index, []))
        return {
            line: BranchLineCoverage(covered=sum(1 for h in hits if h > 0), total=len(hits))
            for line, hits in sorted(paths.items())
        }

    def to_summary(self) -> CoverageSummary:
        return CoverageSummary(
            lines=Metric.from_hits(list(self.get_line_coverage().values())),
            statements=Metric.from_hits(list(self.s.values())),
            functions=Metric.from_hits(list(self.f.values())),
            branches=Metric.from_hits([hits for counts in self.b.values() for hits in counts]),
        )


class CoverageMap(Mapping[str, FileCoverage]):
    """Read-only path → FileCoverage mapping produced by a finalized merge."""

    __slots__ = ("_files",)

    def __init__(self, files: Mapping[str, FileCoverage] | None = None) -> None:
        self._files = MappingProxyType(dict(files or {}))

    def __getitem__(self, path: str) -> FileCoverage:
        return self._files[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def files(self) -> list[str]:
        """File paths in sorted order."""
        return sorted(self._files)

    def file_coverage_for(self, path: str) -> FileCoverage:
        return self._files[path]

    def get_coverage_summary(self) -> CoverageSummary:
        """Aggregate summary over every file."""
        total = CoverageSummary()
        for path in self.files():
            total = total.merge(self._files[path].to_summary())
        return total
