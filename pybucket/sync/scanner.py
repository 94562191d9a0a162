"""Tree walking over local directories and remote key prefixes."""

import logging
import posixpath
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..backends import Backends
from ..filters import FileFilter
from ..paths import (
    LocalLocation,
    Location,
    LocationKind,
    RemoteLocation,
    relative_key,
)

logger = logging.getLogger(__name__)


@dataclass
class WalkEntry:
    """One object discovered below a walk root."""

    location: Location
    """Full location of the object"""

    relative_path: str
    """Path relative to the walk root (always ``/``-separated)"""

    size: int
    """Size in bytes"""

    digest: Optional[str] = None
    """Digest supplied by the listing (remote ETag), if any"""


class TreeWalker:
    """Enumerate the objects below a root, relative to that root.

    Local roots are walked depth first with entries sorted per directory.
    Remote roots are listed by key prefix in the order the store returns
    them. Every relative path must pass the filter before it is yielded.
    """

    def __init__(self, backends: Backends, file_filter: Optional[FileFilter] = None):
        """Initialize the walker.

        Args:
            backends: Local and remote backends
            file_filter: Include/exclude filter applied to relative paths
        """
        self.backends = backends
        self.file_filter = file_filter or FileFilter()
        self._walkers = {
            LocationKind.LOCAL: self._walk_local,
            LocationKind.REMOTE: self._walk_remote,
        }

    def walk(self, root: Location) -> Iterator[WalkEntry]:
        """Yield every matching object below ``root``.

        Raises:
            BucketNotFoundError: If a local root does not exist
            BucketTransportError: If listing fails
        """
        skipped = 0
        for entry in self._walkers[root.kind](root):
            if not self.file_filter.matches(entry.relative_path):
                skipped += 1
                continue
            yield entry
        if skipped:
            logger.debug(f"Filter skipped {skipped} entries below {root}")

    def _walk_local(self, root: Location) -> Iterator[WalkEntry]:
        base = Path(root.path)
        is_file = base.is_file()
        for listed in self.backends.local.list(root, recursive=True):
            path = Path(listed.key)
            if is_file:
                relative = path.name
            else:
                # as_posix() keeps relative paths /-separated on every platform
                relative = path.relative_to(base).as_posix()
            yield WalkEntry(
                location=LocalLocation(listed.key),
                relative_path=relative,
                size=listed.size,
                digest=listed.digest,
            )

    def _walk_remote(self, root: Location) -> Iterator[WalkEntry]:
        prefix = root.key
        for listed in self.backends.remote.list(root, recursive=True):
            if listed.key.endswith("/"):
                # Folder marker objects carry no data
                continue
            if listed.key == prefix:
                relative = posixpath.basename(listed.key)
            else:
                relative = relative_key(listed.key, prefix)
            yield WalkEntry(
                location=RemoteLocation(root.bucket, listed.key),
                relative_path=relative,
                size=listed.size,
                digest=listed.digest,
            )
