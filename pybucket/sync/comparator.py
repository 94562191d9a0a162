"""Metadata comparison between two collected trees."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import ObjectMetadata


class DiffType(str, Enum):
    """Kinds of difference between a source and a destination tree."""

    ONLY_IN_SOURCE = "only_in_source"
    """Key exists only in the source"""

    ONLY_IN_DEST = "only_in_dest"
    """Key exists only in the destination"""

    SIZE_DIFFERS = "size_differs"
    """Key exists on both sides with different sizes"""

    CONTENT_DIFFERS = "content_differs"
    """Sizes match but digests differ"""


@dataclass
class DiffEntry:
    """One difference found for a relative key."""

    diff_type: DiffType
    """Category of the difference"""

    relative_key: str
    """Key relative to both roots"""

    source: Optional[ObjectMetadata] = None
    """Source side metadata (if present)"""

    dest: Optional[ObjectMetadata] = None
    """Destination side metadata (if present)"""


class FileComparator:
    """Compares two metadata maps keyed by relative path."""

    def __init__(self, content_compare: bool = False):
        """Initialize file comparator.

        Args:
            content_compare: Also compare digests of equally sized entries
        """
        self.content_compare = content_compare

    def compare_files(
        self,
        source_files: dict[str, ObjectMetadata],
        dest_files: dict[str, ObjectMetadata],
    ) -> list[DiffEntry]:
        """Compare two maps and return differences sorted by key.

        Args:
            source_files: Source metadata by relative key
            dest_files: Destination metadata by relative key

        Returns:
            List of DiffEntry in lexicographic key order
        """
        entries = []
        for key in sorted(set(source_files) | set(dest_files)):
            entry = self._compare_single(key, source_files.get(key), dest_files.get(key))
            if entry is not None:
                entries.append(entry)
        return entries

    def _compare_single(
        self,
        key: str,
        source: Optional[ObjectMetadata],
        dest: Optional[ObjectMetadata],
    ) -> Optional[DiffEntry]:
        if dest is None:
            return DiffEntry(DiffType.ONLY_IN_SOURCE, key, source=source)
        if source is None:
            return DiffEntry(DiffType.ONLY_IN_DEST, key, dest=dest)

        if source.size != dest.size:
            return DiffEntry(DiffType.SIZE_DIFFERS, key, source=source, dest=dest)

        # A digest missing on either side means content cannot be compared
        if (
            self.content_compare
            and source.digest is not None
            and dest.digest is not None
            and source.digest != dest.digest
        ):
            return DiffEntry(DiffType.CONTENT_DIFFERS, key, source=source, dest=dest)

        return None
