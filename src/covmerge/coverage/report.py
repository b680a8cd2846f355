"""Merged coverage reports.

Two reports are produced from a finalized CoverageMap:

JSON summary (streamed, one entry per line):
{"total": {"lines": {...}, "statements": {...}, "functions": {...}, "branches": {...}}
,"src/a.js": {"lines": {...}, ..., "uncovered_lines": "3-5,9"}
}

Each metric is {"total": int, "covered": int, "skipped": int, "pct": number}.
"total" never carries "uncovered_lines".

Text summary: a Rich table on stdout with one row per file plus "All files".
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from types import TracebackType
from typing import IO, TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from covmerge.config.constants import DEFAULT_OUTPUT_FILE, TOTAL_KEY
from covmerge.core.errors import ReportError
from covmerge.core.logging import get_logger
from covmerge.coverage.models import CoverageMap, CoverageSummary, Metric
from covmerge.coverage.ranges import uncovered_lines

if TYPE_CHECKING:
    from covmerge.config.models import ReportConfig

log = get_logger("coverage.report")


class JsonSummaryWriter:
    """Streams a JSON object to disk one entry at a time.

    Usage::

        with JsonSummaryWriter(path) as writer:
            writer.append("total", {...})
            writer.append("src/a.js", {...})

    Leaving the block normally writes the closing brace; leaving it through an
    exception only closes the file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._fh: IO[str] | None = None
        self._first = True

    @property
    def closed(self) -> bool:
        return self._fh is None

    def start(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self.path.open("w", encoding="utf-8")
        self._first = True
        self._fh.write("{")

    def append(self, key: str, value: dict[str, Any]) -> None:
        if self._fh is None:
            raise RuntimeError("JsonSummaryWriter.append() called before start()")
        if self._first:
            self._first = False
        else:
            self._fh.write(",")
        self._fh.write(json.dumps(key))
        self._fh.write(": ")
        self._fh.write(json.dumps(value, separators=(",", ":")))
        self._fh.write("\n")

    def finish(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.write("}\n")
        finally:
            self.close()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> JsonSummaryWriter:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.finish()
        else:
            self.close()


def file_summary_entry(coverage_map: CoverageMap, path: str) -> dict[str, Any]:
    """A file's summary plus its uncovered line ranges, when it has any."""
    file_coverage = coverage_map.file_coverage_for(path)
    summary = file_coverage.to_summary()
    entry = summary.to_dict()
    if uncovered := uncovered_lines(summary, file_coverage):
        entry["uncovered_lines"] = uncovered
    return entry


def write_json_summary(coverage_map: CoverageMap, path: Path) -> Path:
    """Write the merged JSON summary: "total" first, then files by path."""
    with JsonSummaryWriter(path) as writer:
        writer.append(TOTAL_KEY, coverage_map.get_coverage_summary().to_dict())
        for file_path in coverage_map.files():
            writer.append(file_path, file_summary_entry(coverage_map, file_path))
    log.info("json_summary_written", path=str(path), files=len(coverage_map))
    return path


def _cell(metric: Metric) -> str:
    pct = metric.to_dict()["pct"]
    return f"{pct} ({metric.covered}/{metric.total})"


def _row(name: str, summary: CoverageSummary, uncovered: str) -> list[str]:
    return [
        escape(name),
        _cell(summary.statements),
        _cell(summary.branches),
        _cell(summary.functions),
        _cell(summary.lines),
        uncovered,
    ]


def build_text_table(coverage_map: CoverageMap) -> Table:
    """Tabular summary: one row per file, "All files" first."""
    table = Table(show_header=True, header_style="bold", show_edge=False)
    table.add_column("File", no_wrap=True)
    table.add_column("% Stmts", justify="right")
    table.add_column("% Branch", justify="right")
    table.add_column("% Funcs", justify="right")
    table.add_column("% Lines", justify="right")
    table.add_column("Uncovered Line #s", overflow="fold")

    table.add_row(*_row("All files", coverage_map.get_coverage_summary(), ""), end_section=True)
    for path in coverage_map.files():
        file_coverage = coverage_map.file_coverage_for(path)
        summary = file_coverage.to_summary()
        table.add_row(*_row(path, summary, uncovered_lines(summary, file_coverage)))
    return table


def render_text_summary(
    coverage_map: CoverageMap,
    *,
    console: Console | None = None,
    max_cols: int | None = None,
) -> None:
    """Print the tabular summary to stdout (or the given console)."""
    console = console or Console(width=max_cols, highlight=False)
    console.print(build_text_table(coverage_map))


async def execute_reports(
    coverage_map: CoverageMap,
    output_dir: Path,
    config: ReportConfig,
    *,
    console: Console | None = None,
) -> Path:
    """Write the JSON summary and, if enabled, render the text summary.

    Returns:
        Path of the JSON summary.
    """
    report_path = await asyncio.to_thread(
        write_json_summary, coverage_map, output_dir / config.output_file
    )
    if config.text_summary:
        render_text_summary(coverage_map, console=console, max_cols=config.max_cols)
    return report_path


def read_total_summary(path: Path, *, report_name: str | None = None) -> dict[str, Any]:
    """Return the "total" entry of a merged JSON summary.

    Args:
        path: The summary file, or a directory containing it.
        report_name: File name to look for when ``path`` is a directory.

    Raises:
        ReportError: If the summary is missing, unreadable or has no total.
    """
    if path.is_dir():
        path = path / (report_name or DEFAULT_OUTPUT_FILE)
    if not path.is_file():
        raise ReportError.not_found(str(path))

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log.error("summary_unreadable", path=str(path), error=str(e))
        raise ReportError.missing_total(str(path)) from e

    if not isinstance(payload, dict) or TOTAL_KEY not in payload:
        raise ReportError.missing_total(str(path))
    return payload[TOTAL_KEY]  # type: ignore[no-any-return]
