"""Local filesystem backend."""

from __future__ import annotations

import logging
import os
import shutil
import stat as stat_module
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional

from ..exceptions import (
    BucketNotFoundError,
    BucketNotImplementedError,
    BucketTransportError,
)
from ..models import ListedObject, MultipartSession, ObjectInfo
from ..paths import Location, LocationKind
from ..utils import STREAM_CHUNK_SIZE, calculate_file_checksum, detect_mime_type

logger = logging.getLogger(__name__)


class BoundedReader:
    """File wrapper that stops reading after ``length`` bytes."""

    def __init__(self, raw: BinaryIO, length: Optional[int] = None):
        self._raw = raw
        self._remaining = length

    def read(self, size: int = -1) -> bytes:
        if self._remaining is None:
            return self._raw.read(size)
        if self._remaining <= 0:
            return b""
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining
        data = self._raw.read(size)
        self._remaining -= len(data)
        return data

    def close(self) -> None:
        self._raw.close()

    def __enter__(self) -> "BoundedReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class LocalBackend:
    """Storage backend over the local filesystem.

    Listing walks directories depth first, range reads seek into the file
    and writes create missing parent directories. Multipart uploads are not
    supported; a server-side copy is a plain byte copy.
    """

    kind = LocationKind.LOCAL

    def _path(self, location: Location) -> Path:
        if location.kind is not LocationKind.LOCAL:
            raise BucketNotImplementedError(
                f"Local backend cannot handle remote location {location}"
            )
        return Path(location.path)

    def stat(self, location: Location, checksum: bool = False) -> ObjectInfo:
        """Return metadata of a local file or directory.

        The MD5 digest is only computed for regular files when ``checksum``
        is set.
        """
        path = self._path(location)
        try:
            st = path.stat()
            is_link = path.is_symlink()
        except FileNotFoundError as e:
            raise BucketNotFoundError(
                str(path), f"Path '{path}' does not exist"
            ) from e
        except OSError as e:
            raise BucketTransportError(f"Cannot access '{path}': {e}") from e

        if stat_module.S_ISDIR(st.st_mode):
            kind = "directory"
        elif is_link:
            kind = "symbolic link"
        else:
            kind = "file"

        digest = None
        details: dict = {}
        if stat_module.S_ISREG(st.st_mode):
            details["content_type"] = detect_mime_type(path)
            if checksum:
                digest = self._checksum(path, "MD5")
        details["storage"] = "local"
        details["mode"] = f"{stat_module.S_IMODE(st.st_mode):o}"
        details["uid"] = st.st_uid
        details["gid"] = st.st_gid
        details["inode"] = st.st_ino
        details["links"] = st.st_nlink

        return ObjectInfo(
            size=st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime),
            digest=digest,
            kind=kind,
            details=details,
        )

    def checksum(self, location: Location, algorithm: str) -> str:
        """Compute a checksum of a local file with the given algorithm."""
        return self._checksum(self._path(location), algorithm)

    def _checksum(self, path: Path, algorithm: str) -> str:
        try:
            return calculate_file_checksum(path, algorithm)
        except FileNotFoundError as e:
            raise BucketNotFoundError(str(path)) from e
        except OSError as e:
            raise BucketTransportError(f"Failed to read '{path}': {e}") from e

    def list(self, location: Location, recursive: bool = True) -> Iterator[ListedObject]:
        """Enumerate regular files below a directory.

        A file root yields only itself. Inside a directory its files come
        first, then its subdirectories, each in sorted order, so the walk is
        deterministic.
        """
        root = self._path(location)
        if not root.exists():
            raise BucketNotFoundError(str(root), f"Path '{root}' does not exist")

        if root.is_file():
            yield self._listed(root)
            return

        if not recursive:
            yield from self._list_children(root)
            return

        yield from self._walk(root)

    def _sorted_children(self, directory: Path) -> list[Path]:
        try:
            return sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise BucketTransportError(f"Failed to list '{directory}': {e}") from e

    def _walk(self, directory: Path) -> Iterator[ListedObject]:
        children = self._sorted_children(directory)
        subdirs = []
        for item in children:
            if item.is_dir():
                # Symlinked directories are not followed
                if not item.is_symlink():
                    subdirs.append(item)
            elif item.is_file():
                yield self._listed(item)
        for subdir in subdirs:
            yield from self._walk(subdir)

    def _list_children(self, root: Path) -> Iterator[ListedObject]:
        for item in self._sorted_children(root):
            if item.is_dir():
                yield ListedObject(key=str(item) + os.sep, is_prefix=True)
            elif item.is_file():
                yield self._listed(item)

    def _listed(self, path: Path) -> ListedObject:
        st = path.stat()
        return ListedObject(
            key=str(path),
            size=st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime),
        )

    def open_range_reader(
        self,
        location: Location,
        start: Optional[int] = None,
        length: Optional[int] = None,
        checksum: bool = False,
    ) -> BinaryIO:
        """Open a local file positioned at ``start`` and bounded to ``length``."""
        path = self._path(location)
        if path.is_dir():
            raise BucketNotFoundError(str(path), f"'{path}' is not a file")
        try:
            f = path.open("rb")
        except FileNotFoundError as e:
            raise BucketNotFoundError(
                str(path), f"File '{path}' does not exist"
            ) from e
        except OSError as e:
            raise BucketTransportError(f"Cannot open '{path}': {e}") from e

        if start is None and length is None:
            return f
        if start:
            f.seek(start)
        return BoundedReader(f, length)

    def put(
        self,
        location: Location,
        stream: BinaryIO,
        size_hint: Optional[int] = None,
        checksum_algorithm: Optional[str] = None,
    ) -> None:
        """Create (or truncate) a local file from a stream."""
        path = self._path(location)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as f:
                shutil.copyfileobj(stream, f, STREAM_CHUNK_SIZE)
        except OSError as e:
            raise BucketTransportError(f"Failed to write '{path}': {e}") from e
        logger.debug(f"Wrote {path}")

    def begin_multipart(self, location: Location) -> MultipartSession:
        raise BucketNotImplementedError(
            "Multipart uploads are not supported by the local backend"
        )

    def upload_part(
        self, session: MultipartSession, part_number: int, data: bytes
    ) -> str:
        raise BucketNotImplementedError(
            "Multipart uploads are not supported by the local backend"
        )

    def complete_multipart(self, session: MultipartSession) -> None:
        raise BucketNotImplementedError(
            "Multipart uploads are not supported by the local backend"
        )

    def abort_multipart(self, session: MultipartSession) -> None:
        raise BucketNotImplementedError(
            "Multipart uploads are not supported by the local backend"
        )

    def server_side_copy(self, source: Location, dest: Location) -> None:
        """Copy a file byte for byte, creating parent directories."""
        src_path = self._path(source)
        dst_path = self._path(dest)
        try:
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src_path, dst_path)
        except FileNotFoundError as e:
            raise BucketNotFoundError(
                str(src_path), f"File '{src_path}' does not exist"
            ) from e
        except OSError as e:
            raise BucketTransportError(
                f"Failed to copy '{src_path}' to '{dst_path}': {e}"
            ) from e

    def delete(self, location: Location) -> None:
        path = self._path(location)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise BucketNotFoundError(str(path)) from e
        except OSError as e:
            raise BucketTransportError(f"Failed to delete '{path}': {e}") from e
        logger.debug(f"Deleted {path}")
