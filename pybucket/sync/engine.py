"""One-way size-based sync between a source and a destination tree."""

import logging
from typing import Callable, Optional

from ..backends import Backends
from ..exceptions import BucketNotFoundError, BucketNotImplementedError
from ..filters import FileFilter
from ..output import OutputFormatter
from ..paths import Location, LocationKind
from .operations import ProgressCallback, TransferEngine
from .scanner import TreeWalker

logger = logging.getLogger(__name__)

# Word used in the sync summary for each direction
SYNC_VERBS = {
    (LocationKind.LOCAL, LocationKind.REMOTE): "uploaded",
    (LocationKind.REMOTE, LocationKind.LOCAL): "downloaded",
    (LocationKind.REMOTE, LocationKind.REMOTE): "copied",
}


class SyncEngine:
    """Copies source entries that are missing or differ in size at the destination.

    Sync never deletes anything and never compares content: two files with
    equal size are considered unchanged.
    """

    def __init__(
        self,
        backends: Backends,
        transfer: Optional[TransferEngine] = None,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            backends: Local and remote backends
            transfer: Engine used for each copy
            output: Output formatter for per-file messages
        """
        self.backends = backends
        self.transfer = transfer or TransferEngine(backends)
        self.output = output or OutputFormatter(quiet=True)

    def _destination_sizes(self, dest: Location) -> dict[str, int]:
        """Sizes of everything already at the destination, unfiltered."""
        walker = TreeWalker(self.backends)
        try:
            return {entry.relative_path: entry.size for entry in walker.walk(dest)}
        except BucketNotFoundError:
            logger.debug(f"Destination {dest} does not exist yet")
            return {}

    def sync(
        self,
        source: Location,
        dest: Location,
        file_filter: Optional[FileFilter] = None,
        progress_factory: Optional[Callable[[str], ProgressCallback]] = None,
    ) -> dict:
        """Sync ``source`` into ``dest``.

        Args:
            source: Root to read from
            dest: Root to write to
            file_filter: Include/exclude filter on relative paths
            progress_factory: Returns a progress callback for a file name

        Returns:
            Dictionary with ``copied``, ``skipped`` and ``verb``

        Raises:
            BucketNotImplementedError: For local to local sync
            BucketNotFoundError: If a local source does not exist

        Examples:
            >>> engine = SyncEngine(backends)
            >>> stats = engine.sync(LocalLocation("./data"), RemoteLocation("b", "p"))
            >>> print(f"{stats['copied']} {stats['verb']}")
        """
        verb = SYNC_VERBS.get((source.kind, dest.kind))
        if verb is None:
            raise BucketNotImplementedError(
                "Local to local sync not implemented. Use standard 'rsync' command."
            )

        dest_sizes = self._destination_sizes(dest)
        logger.debug(f"Found {len(dest_sizes)} existing entries at {dest}")

        stats = {"copied": 0, "skipped": 0, "bytes": 0, "verb": verb}
        walker = TreeWalker(self.backends, file_filter)
        for entry in walker.walk(source):
            existing_size = dest_sizes.get(entry.relative_path)
            if existing_size is not None and existing_size == entry.size:
                logger.debug(f"Skipping unchanged {entry.relative_path}")
                stats["skipped"] += 1
                continue

            target = dest.child(entry.relative_path)
            callback = progress_factory(entry.relative_path) if progress_factory else None
            result = self.transfer.copy_one(
                entry.location,
                target,
                progress_callback=callback,
                expand_destination=False,
            )
            self.output.info(result.message)
            stats["copied"] += 1
            stats["bytes"] += result.size

        logger.info(
            f"Sync {source} -> {dest}: {stats['copied']} {verb}, "
            f"{stats['skipped']} skipped"
        )
        return stats
