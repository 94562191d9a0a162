"""Single-object transfers between backends."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from ..backends import Backends
from ..exceptions import BucketError
from ..models import ChecksumOptions, CompletedPart
from ..paths import Location, LocationKind
from ..utils import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MULTIPART_THRESHOLD,
    format_size,
    read_exactly,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class TransferResult:
    """Outcome of one completed transfer."""

    source: Location
    dest: Location
    size: int
    method: str
    """``upload``, ``multipart``, ``download``, ``server-side copy`` or ``copy``"""
    parts: int = 0

    @property
    def verb(self) -> str:
        return _VERBS[self.method]

    @property
    def message(self) -> str:
        return f"{self.verb}: {self.source} -> {self.dest}"


_VERBS = {
    "upload": "Uploaded",
    "multipart": "Uploaded",
    "download": "Downloaded",
    "server-side copy": "Copied",
    "copy": "Copied",
}


class ProgressReader:
    """Stream wrapper that reports bytes read to a progress callback."""

    def __init__(
        self,
        raw: BinaryIO,
        total: int,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self._raw = raw
        self.total = total
        self.bytes_read = 0
        self._callback = progress_callback

    def read(self, size: int = -1) -> bytes:
        data = self._raw.read(size)
        if data:
            self.bytes_read += len(data)
            if self._callback:
                self._callback(self.bytes_read, self.total)
        return data


class TransferEngine:
    """Copy one object from a source location to a destination location.

    The strategy is picked from a closed table keyed on the pair of
    location kinds. Uploads from local files switch to a multipart upload
    once the file reaches the multipart threshold.
    """

    def __init__(
        self,
        backends: Backends,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        multipart_threshold: int = DEFAULT_MULTIPART_THRESHOLD,
        abort_on_failure: bool = False,
    ):
        """Initialize the transfer engine.

        Args:
            backends: Local and remote backends
            chunk_size: Part size for multipart uploads (bytes)
            multipart_threshold: Minimum file size for multipart uploads
            abort_on_failure: Abort a multipart upload when a part fails
                instead of leaving it open on the server
        """
        self.backends = backends
        self.chunk_size = chunk_size
        self.multipart_threshold = multipart_threshold
        self.abort_on_failure = abort_on_failure
        self._strategies = {
            (LocationKind.LOCAL, LocationKind.REMOTE): self._upload,
            (LocationKind.REMOTE, LocationKind.LOCAL): self._download,
            (LocationKind.REMOTE, LocationKind.REMOTE): self._copy_remote,
            (LocationKind.LOCAL, LocationKind.LOCAL): self._copy_local,
        }

    def resolve_destination(self, source: Location, dest: Location) -> Location:
        """Append the source base name when the destination is a container.

        A remote destination with an empty key or a key ending in ``/`` and
        a local destination that is an existing directory or ends with a
        path separator both receive the source's base name.
        """
        if dest.kind is LocationKind.REMOTE:
            if not dest.key or dest.key.endswith("/"):
                return dest.child(source.name)
            return dest
        if dest.path.endswith(("/", os.sep)) or Path(dest.path).is_dir():
            return dest.child(source.name)
        return dest

    def copy_one(
        self,
        source: Location,
        dest: Location,
        checksum: Optional[ChecksumOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
        expand_destination: bool = True,
    ) -> TransferResult:
        """Copy one object.

        Args:
            source: Object to read
            dest: Destination object (or container, see resolve_destination)
            checksum: Integrity checksum options for the transfer
            progress_callback: Optional callback function(bytes_done, total)
            expand_destination: Apply resolve_destination to ``dest``

        Returns:
            TransferResult describing what was done

        Raises:
            BucketNotFoundError: If the source does not exist
            BucketTransportError: If a backend call fails
        """
        if expand_destination:
            dest = self.resolve_destination(source, dest)
        strategy = self._strategies[(source.kind, dest.kind)]
        logger.debug(f"Copying {source} -> {dest} via {strategy.__name__}")
        return strategy(source, dest, checksum or ChecksumOptions(), progress_callback)

    def _upload(
        self,
        source: Location,
        dest: Location,
        checksum: ChecksumOptions,
        progress_callback: Optional[ProgressCallback],
    ) -> TransferResult:
        size = self.backends.local.stat(source).size
        if size > 0 and size >= self.multipart_threshold:
            if checksum.upload_algorithm:
                logger.warning(
                    "Checksum algorithm is not applied to multipart uploads"
                )
            return self._upload_multipart(source, dest, size, progress_callback)

        with self.backends.local.open_range_reader(source) as f:
            self.backends.remote.put(
                dest,
                f,
                size_hint=size,
                checksum_algorithm=checksum.upload_algorithm,
            )
        if progress_callback:
            progress_callback(size, size)
        logger.info(f"Uploaded {source} -> {dest} ({format_size(size)})")
        return TransferResult(source, dest, size, "upload")

    def _upload_multipart(
        self,
        source: Location,
        dest: Location,
        size: int,
        progress_callback: Optional[ProgressCallback],
    ) -> TransferResult:
        remote = self.backends.remote
        session = remote.begin_multipart(dest)
        logger.info(
            f"Starting multipart upload of {source} ({format_size(size)}) "
            f"in {format_size(self.chunk_size)} parts, upload id {session.upload_id}"
        )

        uploaded = 0
        try:
            with self.backends.local.open_range_reader(source) as f:
                part_number = 1
                while True:
                    data = read_exactly(f, self.chunk_size)
                    if not data:
                        break

                    etag = remote.upload_part(session, part_number, data)
                    session.parts.append(CompletedPart(part_number, etag))
                    uploaded += len(data)
                    logger.info(
                        f"Uploaded part {part_number} "
                        f"({uploaded * 100 // size}% of {format_size(size)})"
                    )
                    if progress_callback:
                        progress_callback(uploaded, size)

                    if len(data) < self.chunk_size:
                        break
                    part_number += 1

            remote.complete_multipart(session)
        except BucketError:
            if self.abort_on_failure:
                try:
                    remote.abort_multipart(session)
                except BucketError as abort_error:
                    logger.warning(
                        f"Failed to abort multipart upload {session.upload_id}: "
                        f"{abort_error}"
                    )
            else:
                logger.warning(
                    f"Multipart upload {session.upload_id} for {dest} "
                    f"left incomplete after {len(session.parts)} parts"
                )
            raise

        logger.info(f"Completed multipart upload of {source} -> {dest}")
        return TransferResult(source, dest, size, "multipart", parts=len(session.parts))

    def _download(
        self,
        source: Location,
        dest: Location,
        checksum: ChecksumOptions,
        progress_callback: Optional[ProgressCallback],
    ) -> TransferResult:
        remote = self.backends.remote
        size = remote.stat(source).size
        stream = remote.open_range_reader(source, checksum=checksum.enabled)
        try:
            reader = ProgressReader(stream, size, progress_callback)
            self.backends.local.put(dest, reader, size_hint=size)
        finally:
            stream.close()
        logger.info(f"Downloaded {source} -> {dest} ({format_size(reader.bytes_read)})")
        return TransferResult(source, dest, reader.bytes_read, "download")

    def _copy_remote(
        self,
        source: Location,
        dest: Location,
        checksum: ChecksumOptions,
        progress_callback: Optional[ProgressCallback],
    ) -> TransferResult:
        size = self.backends.remote.stat(source).size
        self.backends.remote.server_side_copy(source, dest)
        if progress_callback:
            progress_callback(size, size)
        logger.info(f"Copied {source} -> {dest} ({format_size(size)})")
        return TransferResult(source, dest, size, "server-side copy")

    def _copy_local(
        self,
        source: Location,
        dest: Location,
        checksum: ChecksumOptions,
        progress_callback: Optional[ProgressCallback],
    ) -> TransferResult:
        size = self.backends.local.stat(source).size
        self.backends.local.server_side_copy(source, dest)
        if progress_callback:
            progress_callback(size, size)
        logger.info(f"Copied {source} -> {dest} ({format_size(size)})")
        return TransferResult(source, dest, size, "copy")
