"""Command surface for pybucket.

``BucketClient`` is the programmatic entry point behind every CLI command.
It parses location strings, builds filters and ranges, and hands the work to
the transfer, diff, sync and stream engines.
"""

import logging
import posixpath
from collections.abc import Iterable, Iterator
from typing import BinaryIO, Callable, Optional

from .backends import Backends, LocalBackend, S3Backend
from .config import Config
from .exceptions import BucketNotImplementedError, BucketValidationError
from .filters import FileFilter
from .models import ChecksumOptions, ListedObject, ObjectInfo
from .output import OutputFormatter
from .paths import (
    Location,
    LocationKind,
    RemoteLocation,
    parse_location,
    relative_key,
)
from .ranges import resolve_range
from .streams import CatEngine, CmpEngine, CmpResult
from .sync.diff import DiffEngine, DiffReport
from .sync.engine import SyncEngine
from .sync.operations import ProgressCallback, TransferEngine, TransferResult
from .sync.scanner import TreeWalker

logger = logging.getLogger(__name__)

# Checksum algorithm used by local stat when none is chosen
DEFAULT_STAT_CHECKSUM = "SHA256"


class BucketClient:
    """High level operations over local paths and ``s3://`` locations."""

    def __init__(
        self,
        config: Optional[Config] = None,
        backends: Optional[Backends] = None,
        output: Optional[OutputFormatter] = None,
        progress_factory: Optional[Callable[[str], ProgressCallback]] = None,
    ):
        """Initialize the client.

        Args:
            config: Runtime settings (uses defaults if not provided)
            backends: Local and remote backends (built from config if None)
            output: Formatter for per-object messages (silent if None)
            progress_factory: Returns a progress callback for a file name
        """
        self.config = config or Config()
        self.backends = backends or Backends(
            local=LocalBackend(), remote=S3Backend(self.config)
        )
        self.output = output or OutputFormatter(quiet=True)
        self.progress_factory = progress_factory
        self.transfer = TransferEngine(
            self.backends,
            chunk_size=self.config.multipart_chunksize,
            multipart_threshold=self.config.multipart_threshold,
        )

    def _progress(self, name: str) -> Optional[ProgressCallback]:
        if self.progress_factory is None:
            return None
        return self.progress_factory(name)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def copy(
        self,
        source: str,
        dest: str,
        recursive: bool = False,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        checksum_mode: Optional[str] = None,
        checksum_algorithm: Optional[str] = None,
    ) -> list[TransferResult]:
        """Copy a file/object, or a whole tree with ``recursive``.

        Args:
            source: Source path or ``s3://`` URI
            dest: Destination path or ``s3://`` URI
            recursive: Copy every object below ``source``
            include: Glob patterns selecting relative paths (recursive only)
            exclude: Glob patterns rejecting relative paths (recursive only)
            checksum_mode: ``ENABLED`` to request checksums (single object only)
            checksum_algorithm: CRC32, CRC32C, SHA1 or SHA256

        Returns:
            One TransferResult per copied object

        Raises:
            BucketValidationError: For malformed locations, patterns or
                checksum options
            BucketNotImplementedError: For local to local recursive copy
        """
        src = parse_location(source)
        dst = parse_location(dest)
        file_filter = FileFilter(include, exclude)

        if not recursive:
            if file_filter.has_filters():
                logger.warning("Include/exclude patterns are ignored without --recursive")
            checksum = ChecksumOptions.parse(checksum_mode, checksum_algorithm)
            result = self.transfer.copy_one(
                src, dst, checksum, progress_callback=self._progress(src.name)
            )
            self.output.info(result.message)
            return [result]

        if checksum_mode is not None or checksum_algorithm is not None:
            logger.warning("Checksum options are ignored for recursive operations")
        if src.kind is LocationKind.LOCAL and dst.kind is LocationKind.LOCAL:
            raise BucketNotImplementedError(
                "Local to local recursive copy not implemented. "
                "Use standard 'cp -r' command."
            )
        return self._copy_tree(src, dst, file_filter)

    def _copy_tree(
        self, src: Location, dst: Location, file_filter: FileFilter
    ) -> list[TransferResult]:
        results = []
        walker = TreeWalker(self.backends, file_filter)
        for entry in walker.walk(src):
            result = self.transfer.copy_one(
                entry.location,
                dst.child(entry.relative_path),
                progress_callback=self._progress(entry.relative_path),
                expand_destination=False,
            )
            self.output.info(result.message)
            results.append(result)
        logger.info(f"Copied {len(results)} objects from {src} to {dst}")
        return results

    def sync(
        self,
        source: str,
        dest: str,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> dict:
        """Copy new and size-changed objects from ``source`` to ``dest``.

        Returns:
            Dictionary with ``copied``, ``skipped``, ``bytes`` and ``verb``
        """
        src = parse_location(source)
        dst = parse_location(dest)
        file_filter = FileFilter(include, exclude)
        engine = SyncEngine(self.backends, self.transfer, self.output)
        return engine.sync(src, dst, file_filter, progress_factory=self.progress_factory)

    def move(
        self,
        source: str,
        dest: str,
        recursive: bool = False,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> list[TransferResult]:
        """Copy, then remove the source if it is remote.

        Local sources are never deleted.
        """
        results = self.copy(source, dest, recursive, include, exclude)

        if parse_location(source).kind is LocationKind.REMOTE:
            self.output.info("\nRemoving source files...")
            self.remove(source, recursive, include, exclude)
        else:
            self.output.info("Note: Source files in local filesystem were not removed")
        return results

    def remove(
        self,
        path: str,
        recursive: bool = False,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> int:
        """Delete a remote object, or every matching object below a prefix.

        Returns:
            Number of deleted objects

        Raises:
            BucketValidationError: For local paths or a missing key
        """
        location = parse_location(path)
        if location.kind is not LocationKind.REMOTE:
            raise BucketValidationError("rm command requires S3 URI (s3://bucket/key)")
        remote = self.backends.remote
        file_filter = FileFilter(include, exclude)

        if not recursive:
            if file_filter.has_filters():
                logger.warning("Include/exclude patterns are ignored without --recursive")
            if not location.key:
                raise BucketValidationError(
                    "Key is required for single object removal."
                )
            remote.delete(location)
            self.output.info(f"Deleted: {location}")
            return 1

        deleted = 0
        # Folder marker keys are removed as well, unlike in a tree walk
        for listed in remote.list(location, recursive=True):
            relative = relative_key(listed.key, location.key) or posixpath.basename(
                listed.key.rstrip("/")
            )
            if not file_filter.matches(relative):
                continue
            target = RemoteLocation(location.bucket, listed.key)
            remote.delete(target)
            self.output.info(f"Deleted: {target}")
            deleted += 1

        self.output.info(f"Total deleted: {deleted} objects")
        return deleted

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def diff(
        self,
        source: str,
        dest: str,
        compare_content: bool = False,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> DiffReport:
        """Report how two trees differ. Differences never raise."""
        src = parse_location(source)
        dst = parse_location(dest)
        file_filter = FileFilter(include, exclude)
        return DiffEngine(self.backends).diff(src, dst, compare_content, file_filter)

    def cat(
        self,
        path: str,
        sink: BinaryIO,
        range_string: Optional[str] = None,
        offset: Optional[int] = None,
        size: Optional[int] = None,
    ) -> int:
        """Write an object, or a byte range of it, to ``sink``.

        Returns:
            Number of bytes written
        """
        byte_range = resolve_range(range_string, offset, size)
        location = parse_location(path)
        return CatEngine(self.backends).cat(location, byte_range, sink)

    def cmp(
        self,
        path1: str,
        path2: str,
        range_string: Optional[str] = None,
        offset: Optional[int] = None,
        size: Optional[int] = None,
    ) -> CmpResult:
        """Compare two objects byte by byte."""
        byte_range = resolve_range(range_string, offset, size)
        left = parse_location(path1)
        right = parse_location(path2)
        return CmpEngine(self.backends).compare(left, right, byte_range)

    def stat(
        self,
        path: str,
        recursive: bool = False,
        checksum_mode: Optional[str] = None,
        checksum_algorithm: Optional[str] = None,
    ) -> list[tuple[Location, ObjectInfo]]:
        """Return metadata for a path, or for every object below it.

        Local files always carry their MD5 digest. With ``checksum_mode``
        set, local files also get the chosen checksum (SHA256 by default)
        and remote objects are queried with checksum mode enabled.
        """
        checksum = ChecksumOptions.parse(checksum_mode, checksum_algorithm)
        location = parse_location(path)

        if not recursive:
            return [(location, self._stat_one(location, checksum))]

        walker = TreeWalker(self.backends)
        return [
            (entry.location, self._stat_one(entry.location, checksum))
            for entry in walker.walk(location)
        ]

    def _stat_one(self, location: Location, checksum: ChecksumOptions) -> ObjectInfo:
        if location.kind is LocationKind.REMOTE:
            return self.backends.remote.stat(location, checksum=checksum.enabled)

        info = self.backends.local.stat(location, checksum=True)
        if checksum.enabled and info.digest is not None:
            algorithm = checksum.algorithm or DEFAULT_STAT_CHECKSUM
            info.details[f"checksum_{algorithm.lower()}"] = (
                self.backends.local.checksum(location, algorithm)
            )
        return info

    def list(
        self, path: Optional[str] = None, recursive: bool = False
    ) -> Iterator[ListedObject]:
        """List buckets (no path) or the objects below a remote prefix.

        Raises:
            BucketValidationError: For local paths
        """
        if path is None:
            yield from self.backends.remote.list_buckets()
            return

        location = parse_location(path)
        if location.kind is not LocationKind.REMOTE:
            raise BucketValidationError(
                "ls command requires S3 URI (s3://bucket[/prefix])"
            )
        yield from self.backends.remote.list(location, recursive=recursive)
