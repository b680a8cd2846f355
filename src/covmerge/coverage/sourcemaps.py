"""Map instrumented-code coverage back to original sources.

Bundlers and transpilers instrument generated code; when the instrumenter
embeds the input source map (``inputSourceMap``, source map v3) in a record,
every statement, function and branch location can be translated back to the
file it was written in. One generated record may fan out into several source
records, and several generated records may contribute to the same source.

Translation rules:

- a position resolves to the closest mapping segment at or before it on the
  same generated line, falling back to the first segment after it;
- a location is kept only when its start and end resolve into the same source;
- locations that cannot be mapped are dropped with their hits;
- identical mapped locations are one entry with summed hits.

Records without an input source map pass through unchanged.
"""

from __future__ import annotations

import asyncio
import os
import posixpath
from bisect import bisect_left, bisect_right
from typing import Any, NamedTuple

from covmerge.core.logging import get_logger
from covmerge.coverage.models import CoverageMap, FileCoverage

log = get_logger("coverage.sourcemaps")

_BASE64_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64 = {c: i for i, c in enumerate(_BASE64_CHARS)}


def decode_vlq(segment: str) -> list[int]:
    """Decode one comma-free base64 VLQ segment into its signed fields.

    Raises:
        ValueError: On a character outside the base64 alphabet or a
            truncated value.
    """
    values: list[int] = []
    value = 0
    shift = 0
    for char in segment:
        digit = _BASE64.get(char)
        if digit is None:
            raise ValueError(f"invalid base64 character {char!r} in mappings")
        value += (digit & 31) << shift
        if digit & 32:
            shift += 5
            continue
        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        value = 0
        shift = 0
    if shift:
        raise ValueError(f"truncated VLQ segment {segment!r}")
    return values


class Segment(NamedTuple):
    """One mapping on a generated line. ``source`` is None for unmapped segments."""

    generated_column: int
    source: int | None = None
    original_line: int = 0  # 0-based
    original_column: int = 0


def decode_mappings(mappings: str) -> list[list[Segment]]:
    """Decode a v3 ``mappings`` string into segments per generated line.

    Lines are 0-based list positions; segments are sorted by generated column.
    """
    lines: list[list[Segment]] = []
    source = original_line = original_column = 0
    for line_text in mappings.split(";"):
        generated_column = 0
        segments: list[Segment] = []
        for text in line_text.split(","):
            if not text:
                continue
            fields = decode_vlq(text)
            if not fields:
                continue
            generated_column += fields[0]
            if len(fields) < 4:
                segments.append(Segment(generated_column))
                continue
            source += fields[1]
            original_line += fields[2]
            original_column += fields[3]
            segments.append(Segment(generated_column, source, original_line, original_column))
        segments.sort(key=lambda s: s.generated_column)
        lines.append(segments)
    return lines


class Position(NamedTuple):
    source: str
    line: int  # 1-based, as in Istanbul locations
    column: int


def _resolve_source(generated_path: str, source_root: str, source: str) -> str:
    if source.startswith("file://"):
        source = source[len("file://") :]
    joined = posixpath.join(source_root, source) if source_root else source
    if os.path.isabs(joined):
        return os.path.normpath(joined)
    return os.path.normpath(os.path.join(os.path.dirname(generated_path), joined))


class SourceMap:
    """Decoded source map of one generated file."""

    def __init__(self, sources: list[str], lines: list[list[Segment]]) -> None:
        self.sources = sources
        self.lines = lines

    @classmethod
    def from_dict(cls, data: dict[str, Any], generated_path: str) -> SourceMap:
        """Decode an inline source map.

        Raises:
            ValueError: If the map is not version 3 or is malformed.
        """
        if data.get("version", 3) != 3:
            raise ValueError(f"unsupported source map version {data.get('version')!r}")
        sources = data.get("sources")
        mappings = data.get("mappings")
        if not isinstance(sources, list) or not isinstance(mappings, str):
            raise ValueError("source map needs 'sources' and 'mappings'")
        root = data.get("sourceRoot") or ""
        resolved = [_resolve_source(generated_path, root, str(s)) for s in sources]
        return cls(resolved, decode_mappings(mappings))

    def _segment(self, line: int, column: int, *, upper: bool) -> Segment | None:
        index = line - 1
        if index < 0 or index >= len(self.lines):
            return None
        segments = self.lines[index]
        if upper:
            i = bisect_left(segments, column, key=lambda s: s.generated_column)
            return segments[i] if i < len(segments) else None
        i = bisect_right(segments, column, key=lambda s: s.generated_column) - 1
        return segments[i] if i >= 0 else None

    def original_position(self, line: int, column: int) -> Position | None:
        """Original position of a generated (1-based line, 0-based column)."""
        segment = self._segment(line, column, upper=False)
        if segment is None or segment.source is None:
            segment = self._segment(line, column, upper=True)
        if segment is None or segment.source is None:
            return None
        if segment.source >= len(self.sources):
            return None
        return Position(
            self.sources[segment.source], segment.original_line + 1, segment.original_column
        )

    def map_location(self, location: Any) -> tuple[str, dict[str, Any]] | None:
        """Translate an Istanbul ``{start, end}`` location.

        Returns:
            ``(source path, mapped location)``, or None when unmappable.
        """
        try:
            start_line = location["start"]["line"]
            start_column = location["start"]["column"]
            end_line = location["end"]["line"]
            end_column = location["end"]["column"]
        except (KeyError, TypeError):
            return None
        if start_line is None or start_column is None or end_line is None:
            return None

        start = self.original_position(start_line, start_column)
        # End columns are exclusive; map the last covered character instead
        end = self.original_position(end_line, max((end_column or 0) - 1, 0))
        if start is None or end is None or start.source != end.source:
            return None
        if (end.line, end.column) < (start.line, start.column):
            return None
        return start.source, {
            "start": {"line": start.line, "column": start.column},
            "end": {"line": end.line, "column": end.column + 1},
        }


def _loc_key(location: dict[str, Any] | None, index: str = "") -> str:
    if not location:
        return f"#{index}"
    start, end = location["start"], location["end"]
    return f"{start['line']}:{start['column']}:{end['line']}:{end['column']}"


class MappedFile:
    """Coverage record under construction for one original source file."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.statement_map: dict[str, Any] = {}
        self.fn_map: dict[str, Any] = {}
        self.branch_map: dict[str, Any] = {}
        self.s: dict[str, int] = {}
        self.f: dict[str, int] = {}
        self.b: dict[str, list[int]] = {}
        self._statements: dict[str, str] = {}
        self._functions: dict[str, str] = {}
        self._branches: dict[str, str] = {}

    def add_statement(
        self, location: dict[str, Any] | None, hits: int, origin: str = ""
    ) -> None:
        key = _loc_key(location, origin)
        index = self._statements.get(key)
        if index is None:
            index = self._statements[key] = str(len(self.s))
            self.statement_map[index] = location
            self.s[index] = 0
        self.s[index] += hits

    def add_function(
        self,
        name: str,
        decl: dict[str, Any] | None,
        location: dict[str, Any] | None,
        hits: int,
        origin: str = "",
    ) -> None:
        key = _loc_key(decl, origin)
        index = self._functions.get(key)
        if index is None:
            index = self._functions[key] = str(len(self.f))
            self.fn_map[index] = {
                "name": name,
                "decl": decl,
                "loc": location,
                "line": (decl or {}).get("start", {}).get("line"),
            }
            self.f[index] = 0
        self.f[index] += hits

    def add_branch(
        self,
        branch_type: str,
        location: dict[str, Any] | None,
        locations: list[dict[str, Any]],
        hits: list[int],
        origin: str = "",
    ) -> None:
        key = "|".join([branch_type, *(_loc_key(loc, origin) for loc in locations or [None])])
        index = self._branches.get(key)
        if index is None:
            index = self._branches[key] = str(len(self.b))
            self.branch_map[index] = {
                "type": branch_type,
                "loc": location,
                "locations": locations,
                "line": (location or {}).get("start", {}).get("line"),
            }
            self.b[index] = [0] * len(hits)
        counts = self.b[index]
        for i, h in enumerate(hits):
            if i < len(counts):
                counts[i] += h
            else:
                counts.append(h)

    def add_record(self, record: FileCoverage) -> None:
        """Fold in an already-resolved record, matching entries by location."""
        for index, hits in record.s.items():
            location = record.statement_map.get(index)
            self.add_statement(location, hits, index)
        for index, hits in record.f.items():
            meta = record.fn_map.get(index) or {}
            location = meta.get("loc") or meta.get("decl")
            self.add_function(
                str(meta.get("name", f"(anonymous_{index})")),
                meta.get("decl") or location,
                location,
                hits,
                index,
            )
        for index, counts in record.b.items():
            meta = record.branch_map.get(index) or {}
            self.add_branch(
                str(meta.get("type", "branch")),
                meta.get("loc"),
                list(meta.get("locations") or []),
                counts,
                index,
            )

    def to_file_coverage(self) -> FileCoverage:
        return FileCoverage(
            path=self.path,
            statement_map=self.statement_map,
            fn_map=self.fn_map,
            branch_map=self.branch_map,
            s=self.s,
            f=self.f,
            b=self.b,
        )


def _transform_record(
    record: FileCoverage, source_map: SourceMap, mapped: dict[str, MappedFile]
) -> None:
    def target(path: str) -> MappedFile:
        if path not in mapped:
            mapped[path] = MappedFile(path)
        return mapped[path]

    for index, hits in record.s.items():
        result = source_map.map_location(record.statement_map.get(index))
        if result is not None:
            target(result[0]).add_statement(result[1], hits)

    for index, hits in record.f.items():
        meta = record.fn_map.get(index) or {}
        loc_result = source_map.map_location(meta.get("loc"))
        if loc_result is None:
            continue
        decl_result = source_map.map_location(meta.get("decl"))
        decl = decl_result[1] if decl_result and decl_result[0] == loc_result[0] else loc_result[1]
        target(loc_result[0]).add_function(
            str(meta.get("name", f"(anonymous_{index})")), decl, loc_result[1], hits
        )

    for index, hits in record.b.items():
        meta = record.branch_map.get(index) or {}
        results = [source_map.map_location(loc) for loc in meta.get("locations") or []]
        if not results or any(r is None for r in results):
            continue
        sources = {r[0] for r in results if r is not None}
        if len(sources) != 1:
            continue
        source = sources.pop()
        locations = [r[1] for r in results if r is not None]
        loc_result = source_map.map_location(meta.get("loc"))
        location = loc_result[1] if loc_result and loc_result[0] == source else locations[0]
        target(source).add_branch(str(meta.get("type", "branch")), location, locations, hits)


def apply_source_maps(coverage_map: CoverageMap) -> CoverageMap:
    """Rewrite records that carry an input source map; keep the rest."""
    mapped: dict[str, MappedFile] = {}
    passthrough: dict[str, FileCoverage] = {}

    for path in coverage_map.files():
        record = coverage_map.file_coverage_for(path)
        if not record.input_source_map:
            passthrough[path] = record
            continue
        try:
            source_map = SourceMap.from_dict(record.input_source_map, record.path)
        except ValueError as e:
            log.warning("sourcemap_invalid", path=path, error=str(e))
            passthrough[path] = record
            continue
        before = set(mapped)
        _transform_record(record, source_map, mapped)
        log.debug("sourcemap_applied", path=path, sources=sorted(set(mapped) - before))

    files: dict[str, FileCoverage] = dict(passthrough)
    for path, mapped_file in mapped.items():
        existing = files.get(path)
        if existing is not None and not existing.all:
            # Indices of the two records are unrelated; combine by location
            combined = MappedFile(path)
            combined.add_record(existing)
            combined.add_record(mapped_file.to_file_coverage())
            mapped_file = combined
        files[path] = mapped_file.to_file_coverage()

    if mapped:
        log.info(
            "sourcemaps_applied",
            generated=len(coverage_map) - len(passthrough),
            sources=len(mapped),
        )
    return CoverageMap(files)


async def transform_coverage(coverage_map: CoverageMap) -> CoverageMap:
    """Apply input source maps off the event loop."""
    return await asyncio.to_thread(apply_source_maps, coverage_map)
