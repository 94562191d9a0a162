"""Byte range resolution shared by ``cat`` and ``cmp``."""

from dataclasses import dataclass
from typing import Optional

from .exceptions import BucketConflictingRangeOptionsError, BucketInvalidRangeError

RANGE_UNIT_PREFIX = "bytes="


@dataclass(frozen=True)
class ByteRange:
    """A resolved byte window into an object.

    ``start`` of None means the beginning; ``length`` of None means up to the
    end of the object.
    """

    start: Optional[int] = None
    length: Optional[int] = None

    @property
    def is_whole(self) -> bool:
        """True if no range was requested at all."""
        return self.start is None and self.length is None

    @property
    def offset(self) -> int:
        """Start position, defaulting to zero."""
        return self.start or 0

    def to_header(self) -> Optional[str]:
        """Render as an HTTP ``Range`` header value.

        Returns:
            ``bytes=start-end``, ``bytes=start-`` or None for the whole object.
            A zero length has no header form; callers must short-circuit it.
        """
        if self.is_whole:
            return None
        if self.length is None:
            return f"{RANGE_UNIT_PREFIX}{self.offset}-"
        return f"{RANGE_UNIT_PREFIX}{self.offset}-{self.offset + self.length - 1}"


def _parse_position(value: str, what: str, original: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise BucketInvalidRangeError(
            f"Invalid {what} position in range '{original}': '{value}'"
        )
    return int(value)


def parse_range_string(range_string: str) -> ByteRange:
    """Parse ``start-end`` or ``start-``, optionally prefixed by ``bytes=``.

    Examples:
        >>> parse_range_string("0-99")
        ByteRange(start=0, length=100)
        >>> parse_range_string("bytes=100-")
        ByteRange(start=100, length=None)
    """
    body = range_string
    if body.startswith(RANGE_UNIT_PREFIX):
        body = body[len(RANGE_UNIT_PREFIX) :]

    parts = body.split("-")
    if len(parts) != 2:
        raise BucketInvalidRangeError(
            f"Invalid range format: '{range_string}'. "
            "Expected format: 'start-end' or 'start-'"
        )

    start = _parse_position(parts[0], "start", range_string)
    if parts[1] == "":
        return ByteRange(start=start, length=None)

    end = _parse_position(parts[1], "end", range_string)
    if end < start:
        raise BucketInvalidRangeError(
            f"Invalid range '{range_string}': end position must be greater "
            "than or equal to start position"
        )
    return ByteRange(start=start, length=end - start + 1)


def resolve_range(
    range_string: Optional[str] = None,
    offset: Optional[int] = None,
    length: Optional[int] = None,
) -> ByteRange:
    """Combine the range options of a read command into one ByteRange.

    Args:
        range_string: ``start-end`` / ``start-`` with optional ``bytes=``
        offset: Start position (alternative to range_string)
        length: Number of bytes to read from offset

    Returns:
        The resolved ByteRange; ``ByteRange()`` means the entire object

    Raises:
        BucketConflictingRangeOptionsError: range_string given with offset/length
        BucketInvalidRangeError: Malformed range or negative values
    """
    if range_string is not None and (offset is not None or length is not None):
        raise BucketConflictingRangeOptionsError(
            "Cannot specify both --range and --offset/--size options"
        )

    if range_string is not None:
        return parse_range_string(range_string)

    if offset is not None and offset < 0:
        raise BucketInvalidRangeError(f"Offset must not be negative: {offset}")
    if length is not None and length < 0:
        raise BucketInvalidRangeError(f"Size must not be negative: {length}")

    if offset is None and length is not None:
        # A bare size reads from the beginning of the object
        return ByteRange(start=0, length=length)
    return ByteRange(start=offset, length=length)
