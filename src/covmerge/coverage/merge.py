"""Coverage merging with summed-hit semantics.

Records for the same file coming from different test runs describe the same
statement/function/branch index space, so merging adds hit counts index by
index:

- s[i] = sum(s[i] across all runs)
- f[i] = sum(f[i] across all runs)
- b[i][j] = sum(b[i][j] across all runs)

The merger is an explicit aggregator: create it empty, feed it records, then
``finalize()`` it into a read-only ``CoverageMap``.
"""

from collections.abc import Iterable, Mapping

from covmerge.core.errors import CoverageError
from covmerge.core.logging import get_logger
from covmerge.coverage.models import CoverageMap, FileCoverage
from covmerge.coverage.remap import PathRemapper, remap_file_coverage

log = get_logger("coverage.merge")


class CoverageMerger:
    """Accumulates coverage records into one map keyed by (remapped) path."""

    def __init__(self, remapper: PathRemapper | None = None) -> None:
        self._remapper = remapper
        self._files: dict[str, FileCoverage] = {}
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def __len__(self) -> int:
        return len(self._files)

    def merge(self, record: FileCoverage) -> None:
        """Add one record: remap its path, then insert or sum into the map.

        The incoming record is copied; callers keep ownership of it.

        Raises:
            CoverageError: If the merger was already finalized.
        """
        if self._finalized:
            raise CoverageError.map_finalized()

        record = record.copy()
        if self._remapper is not None:
            original = record.path
            remap_file_coverage(record, self._remapper)
            if record.path != original:
                log.debug("path_remapped", source=original, target=record.path)

        existing = self._files.get(record.path)
        if existing is None:
            self._files[record.path] = record
        else:
            existing.merge(record)

    def merge_document(self, document: Mapping[str, FileCoverage]) -> None:
        """Merge every record of one coverage document, in document order."""
        for record in document.values():
            self.merge(record)

    def finalize(self) -> CoverageMap:
        """Freeze the accumulated records into a read-only map."""
        self._finalized = True
        return CoverageMap(self._files)


def merge_documents(
    documents: Iterable[Mapping[str, FileCoverage]],
    *,
    remapper: PathRemapper | None = None,
) -> CoverageMap:
    """Merge already-loaded coverage documents into a finalized map.

    Args:
        documents: Mappings of file path → record, one per run.
        remapper: Optional path remapper applied to every record first.

    Returns:
        Read-only CoverageMap with summed hits per path.
    """
    merger = CoverageMerger(remapper)
    for document in documents:
        merger.merge_document(document)
    return merger.finalize()
