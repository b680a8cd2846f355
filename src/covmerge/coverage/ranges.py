"""Compact notation for uncovered lines.

Lines are reported as comma-joined ranges, e.g. ``"3-5,9"``. A file that is
fully line-covered switches to branch granularity: lines whose branches are
not all taken are reported instead, so untested branches still show up.
"""

from covmerge.coverage.models import CoverageSummary, FileCoverage


def _line_hits(summary: CoverageSummary, file_coverage: FileCoverage) -> list[tuple[int, bool]]:
    lines_pct = 0.0 if summary.is_empty() else summary.lines.pct

    if lines_pct == 100:
        return [
            (line, branches.coverage == 100)
            for line, branches in file_coverage.get_branch_coverage_by_line().items()
        ]
    return [(line, hits > 0) for line, hits in file_coverage.get_line_coverage().items()]


def _compress(line_hits: list[tuple[int, bool]]) -> list[list[int]]:
    ranges: list[list[int]] = []
    new_range = True
    for line, hit in line_hits:
        if hit:
            new_range = True
        elif new_range:
            ranges.append([line])
            new_range = False
        else:
            ranges[-1][1:] = [line]
    return ranges


def _render(line_range: list[int]) -> str:
    if len(line_range) == 1:
        return str(line_range[0])
    return f"{line_range[0]}-{line_range[1]}"


def uncovered_lines(summary: CoverageSummary, file_coverage: FileCoverage) -> str:
    """Uncovered line ranges of one file, ascending, or ``""`` when none.

    Args:
        summary: The file's own summary (decides line vs branch granularity).
        file_coverage: The file's coverage record.
    """
    return ",".join(_render(r) for r in _compress(_line_hits(summary, file_coverage)))
