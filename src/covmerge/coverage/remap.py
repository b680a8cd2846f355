"""Build-output to source path remapping.

Coverage collected against compiled packages reports paths like
``packages/foo/build/x/y.js``; thresholds and reports should name the source
file instead (``packages/foo/src/x/y.js``).
"""

import re
from dataclasses import dataclass, field

from covmerge.coverage.models import FileCoverage


def _build_pattern(build_dir: str) -> re.Pattern[str]:
    return re.compile(rf"(.*packages/.*/)({re.escape(build_dir)})(/.*)")


@dataclass(frozen=True, slots=True)
class PathRemapper:
    """Rewrites the build directory segment under ``packages/<name>/``."""

    build_dir: str = "build"
    source_dir: str = "src"
    _pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_pattern", _build_pattern(self.build_dir))

    def __call__(self, path: str) -> str:
        match = self._pattern.match(path)
        if match is None:
            return path
        prefix, _build, rest = match.groups()
        return f"{prefix}{self.source_dir}{rest}"


_DEFAULT_REMAPPER = PathRemapper()


def remap_path(path: str, build_dir: str = "build", source_dir: str = "src") -> str:
    """Rewrite a build-output path to its source path; other paths are unchanged."""
    if (build_dir, source_dir) == ("build", "src"):
        return _DEFAULT_REMAPPER(path)
    return PathRemapper(build_dir, source_dir)(path)


def remap_file_coverage(file_coverage: FileCoverage, remapper: PathRemapper) -> FileCoverage:
    """Point a record at its source path. Mutates and returns the record."""
    file_coverage.path = remapper(file_coverage.path)
    return file_coverage
