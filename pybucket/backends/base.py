"""Storage backend protocol.

A backend implements the same small set of operations over one kind of
storage: the local filesystem or an S3-compatible object store. Engines only
ever talk to this interface and pick the backend through ``Backends``.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO, Optional, Protocol

from ..models import ListedObject, MultipartSession, ObjectInfo
from ..paths import Location, LocationKind


class StorageBackend(Protocol):
    """Operations every backend provides."""

    kind: LocationKind

    def stat(self, location: Location, checksum: bool = False) -> ObjectInfo:
        """Return size, digest and modification time of one object.

        Args:
            location: Object to inspect
            checksum: Compute a content digest if the backend does not
                provide one for free

        Raises:
            BucketNotFoundError: If the object does not exist
            BucketTransportError: If the backend call fails
        """
        ...

    def list(self, location: Location, recursive: bool = True) -> Iterator[ListedObject]:
        """List objects below a location.

        Pagination is handled internally; callers see a flat sequence. With
        ``recursive=False`` only immediate children are returned and deeper
        levels are collapsed into entries with ``is_prefix=True``.
        """
        ...

    def open_range_reader(
        self,
        location: Location,
        start: Optional[int] = None,
        length: Optional[int] = None,
        checksum: bool = False,
    ) -> BinaryIO:
        """Open a readable stream over ``[start, start + length)``.

        A missing start reads from the beginning; a missing length reads to
        the end of the object. The caller closes the stream.
        """
        ...

    def put(
        self,
        location: Location,
        stream: BinaryIO,
        size_hint: Optional[int] = None,
        checksum_algorithm: Optional[str] = None,
    ) -> None:
        """Write a whole object from a stream in one call."""
        ...

    def begin_multipart(self, location: Location) -> MultipartSession:
        """Start a multipart upload and return its session."""
        ...

    def upload_part(
        self, session: MultipartSession, part_number: int, data: bytes
    ) -> str:
        """Upload one part and return the backend-assigned part identifier."""
        ...

    def complete_multipart(self, session: MultipartSession) -> None:
        """Finish a multipart upload with the parts recorded in the session."""
        ...

    def abort_multipart(self, session: MultipartSession) -> None:
        """Discard a multipart upload and its uploaded parts."""
        ...

    def server_side_copy(self, source: Location, dest: Location) -> None:
        """Copy an object without streaming it through the client."""
        ...

    def delete(self, location: Location) -> None:
        """Delete one object."""
        ...


@dataclass
class Backends:
    """The pair of backends available to one invocation."""

    local: StorageBackend
    remote: StorageBackend

    def for_kind(self, kind: LocationKind) -> StorageBackend:
        """Return the backend serving the given location kind."""
        return {
            LocationKind.LOCAL: self.local,
            LocationKind.REMOTE: self.remote,
        }[kind]

    def for_location(self, location: Location) -> StorageBackend:
        """Return the backend serving a location."""
        return self.for_kind(location.kind)
