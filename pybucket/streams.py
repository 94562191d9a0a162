"""Range-bounded streaming reads (cat) and byte-level comparison (cmp)."""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .backends import Backends
from .exceptions import BucketValidationError
from .paths import Location, LocationKind
from .ranges import ByteRange
from .utils import STREAM_CHUNK_SIZE, read_exactly

logger = logging.getLogger(__name__)


def _require_object(location: Location) -> None:
    if location.kind is LocationKind.REMOTE and not location.key:
        raise BucketValidationError(
            f"'{location}' is a bucket, please specify an object key"
        )


class CatEngine:
    """Stream an object, or a byte range of it, to a binary sink."""

    def __init__(self, backends: Backends, chunk_size: int = STREAM_CHUNK_SIZE):
        self.backends = backends
        self.chunk_size = chunk_size

    def cat(
        self,
        location: Location,
        byte_range: Optional[ByteRange] = None,
        sink: Optional[BinaryIO] = None,
    ) -> int:
        """Copy the selected bytes of ``location`` to ``sink``.

        Args:
            location: Object or file to read
            byte_range: Bytes to read (whole object if None)
            sink: Writable binary stream

        Returns:
            Number of bytes written
        """
        _require_object(location)
        byte_range = byte_range or ByteRange()
        backend = self.backends.for_location(location)

        written = 0
        remaining = byte_range.length
        stream = backend.open_range_reader(
            location, start=byte_range.start, length=byte_range.length
        )
        try:
            while remaining is None or remaining > 0:
                to_read = self.chunk_size
                if remaining is not None:
                    to_read = min(to_read, remaining)
                chunk = stream.read(to_read)
                if not chunk:
                    break
                if sink is not None:
                    sink.write(chunk)
                written += len(chunk)
                if remaining is not None:
                    remaining -= len(chunk)
        finally:
            stream.close()

        if sink is not None:
            sink.flush()
        logger.debug(f"Wrote {written} bytes of {location}")
        return written


@dataclass
class CmpResult:
    """Outcome of comparing two objects."""

    left: Location
    right: Location
    identical: bool = True
    offset: Optional[int] = None
    """1-based absolute position of the first differing byte"""

    line: Optional[int] = None
    """1-based line number of that byte in the left input"""

    shorter: Optional[Location] = None
    """Side that ended first, if the inputs differ in length"""

    def describe(self) -> str:
        """Message in the style of cmp(1), empty when identical."""
        if self.identical:
            return ""
        if self.offset is not None:
            return (
                f"{self.left} {self.right} differ: "
                f"byte {self.offset}, line {self.line}"
            )
        return f"cmp: EOF on {self.shorter}"


class CmpEngine:
    """Compare two objects byte by byte in lock step.

    Reading stops at the first difference. When no range is requested the
    whole-object sizes are compared as well, so a file that is a prefix of
    the other is reported as shorter.
    """

    def __init__(self, backends: Backends, chunk_size: int = STREAM_CHUNK_SIZE):
        self.backends = backends
        self.chunk_size = chunk_size

    def compare(
        self,
        left: Location,
        right: Location,
        byte_range: Optional[ByteRange] = None,
    ) -> CmpResult:
        """Compare ``left`` and ``right`` within ``byte_range``.

        Returns:
            CmpResult; ``identical`` is False on the first differing byte or
            when one side is shorter
        """
        _require_object(left)
        _require_object(right)
        byte_range = byte_range or ByteRange()

        left_stream = self.backends.for_location(left).open_range_reader(
            left, start=byte_range.start, length=byte_range.length
        )
        try:
            right_stream = self.backends.for_location(right).open_range_reader(
                right, start=byte_range.start, length=byte_range.length
            )
            try:
                result = self._compare_streams(
                    left, right, left_stream, right_stream, byte_range
                )
            finally:
                right_stream.close()
        finally:
            left_stream.close()

        if result.identical and byte_range.is_whole:
            left_size = self.backends.for_location(left).stat(left).size
            right_size = self.backends.for_location(right).stat(right).size
            if left_size != right_size:
                result.identical = False
                result.shorter = left if left_size < right_size else right

        return result

    def _compare_streams(
        self,
        left: Location,
        right: Location,
        left_stream: BinaryIO,
        right_stream: BinaryIO,
        byte_range: ByteRange,
    ) -> CmpResult:
        position = byte_range.offset
        newlines = 0
        remaining = byte_range.length

        while remaining is None or remaining > 0:
            to_read = self.chunk_size
            if remaining is not None:
                to_read = min(to_read, remaining)

            left_chunk = read_exactly(left_stream, to_read)
            right_chunk = read_exactly(right_stream, to_read)

            common = min(len(left_chunk), len(right_chunk))
            if left_chunk[:common] != right_chunk[:common]:
                i = next(
                    i for i in range(common) if left_chunk[i] != right_chunk[i]
                )
                offset = position + i + 1
                line = newlines + left_chunk.count(b"\n", 0, i) + 1
                logger.debug(f"{left} and {right} differ at byte {offset}")
                return CmpResult(left, right, identical=False, offset=offset, line=line)

            position += common
            newlines += left_chunk.count(b"\n", 0, common)

            if len(left_chunk) != len(right_chunk):
                shorter = left if len(left_chunk) < len(right_chunk) else right
                return CmpResult(left, right, identical=False, shorter=shorter)
            if not left_chunk:
                break
            if remaining is not None:
                remaining -= common

        return CmpResult(left, right)
