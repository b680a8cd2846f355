"""Locate per-run coverage documents under a commit directory."""

from pathlib import Path

from covmerge.config.constants import COVERAGE_FILE_NAME
from covmerge.core.logging import get_logger

log = get_logger("coverage.discovery")


def find_coverage_files(commit_dir: Path, file_name: str = COVERAGE_FILE_NAME) -> list[Path]:
    """All files named ``file_name`` below ``commit_dir``, sorted by path.

    A missing directory yields an empty list.
    """
    if not commit_dir.is_dir():
        log.debug("discovery_skipped", commit_dir=str(commit_dir), reason="not a directory")
        return []
    found = sorted(p for p in commit_dir.rglob(file_name) if p.is_file())
    log.debug("coverage_files_found", commit_dir=str(commit_dir), count=len(found))
    return found
