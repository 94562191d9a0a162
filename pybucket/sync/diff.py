"""Metadata diff between two trees."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..backends import Backends
from ..filters import FileFilter
from ..models import ObjectMetadata
from ..paths import Location, LocationKind
from .comparator import DiffEntry, DiffType, FileComparator
from .scanner import TreeWalker

logger = logging.getLogger(__name__)


@dataclass
class DiffReport:
    """Differences between a source and a destination tree."""

    source: Location
    dest: Location
    entries: list[DiffEntry] = field(default_factory=list)

    def counts(self) -> dict[DiffType, int]:
        """Number of entries per difference category."""
        result = {diff_type: 0 for diff_type in DiffType}
        for entry in self.entries:
            result[entry.diff_type] += 1
        return result

    def of_type(self, diff_type: DiffType) -> list[DiffEntry]:
        return [entry for entry in self.entries if entry.diff_type == diff_type]

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def identical(self) -> bool:
        return not self.entries


class DiffEngine:
    """Collect metadata of two trees and report how they differ."""

    def __init__(self, backends: Backends):
        self.backends = backends

    def collect(
        self,
        location: Location,
        file_filter: Optional[FileFilter] = None,
        want_digest: bool = False,
    ) -> dict[str, ObjectMetadata]:
        """Collect metadata of every matching object below a root.

        Args:
            location: Root to walk
            file_filter: Include/exclude filter on relative paths
            want_digest: Fill in digests (MD5 for local files, listing ETag
                for remote objects)

        Returns:
            Metadata keyed by relative path
        """
        walker = TreeWalker(self.backends, file_filter)
        result: dict[str, ObjectMetadata] = {}
        for entry in walker.walk(location):
            digest = None
            if want_digest:
                if location.kind is LocationKind.LOCAL:
                    digest = self.backends.local.stat(
                        entry.location, checksum=True
                    ).digest
                else:
                    digest = entry.digest
            result[entry.relative_path] = ObjectMetadata(
                relative_key=entry.relative_path,
                size=entry.size,
                digest=digest,
            )
        logger.debug(f"Collected {len(result)} entries from {location}")
        return result

    def compare(
        self,
        source_map: dict[str, ObjectMetadata],
        dest_map: dict[str, ObjectMetadata],
        content_compare: bool = False,
    ) -> list[DiffEntry]:
        return FileComparator(content_compare).compare_files(source_map, dest_map)

    def diff(
        self,
        source: Location,
        dest: Location,
        compare_content: bool = False,
        file_filter: Optional[FileFilter] = None,
    ) -> DiffReport:
        """Diff two trees.

        Differences are results, never errors. A missing local root is
        still an error.

        Raises:
            BucketNotFoundError: If a local root does not exist
            BucketTransportError: If listing fails
        """
        source_map = self.collect(source, file_filter, compare_content)
        dest_map = self.collect(dest, file_filter, compare_content)
        entries = self.compare(source_map, dest_map, compare_content)
        logger.info(
            f"Diff {source} vs {dest}: {len(entries)} differences "
            f"({len(source_map)} source, {len(dest_map)} destination entries)"
        )
        return DiffReport(source=source, dest=dest, entries=entries)
