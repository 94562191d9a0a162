"""pybucket - copy, sync, diff and inspect local files and S3 buckets."""

from .api import BucketClient
from .config import Config
from .exceptions import (
    BucketConfigError,
    BucketConflictingRangeOptionsError,
    BucketError,
    BucketInvalidLocationError,
    BucketInvalidPatternError,
    BucketInvalidRangeError,
    BucketNotFoundError,
    BucketNotImplementedError,
    BucketTransportError,
    BucketValidationError,
)
from .filters import FileFilter
from .paths import LocalLocation, RemoteLocation, parse_location
from .ranges import ByteRange, resolve_range

__all__ = [
    "BucketClient",
    "ByteRange",
    "Config",
    "FileFilter",
    "LocalLocation",
    "RemoteLocation",
    "BucketConfigError",
    "BucketConflictingRangeOptionsError",
    "BucketError",
    "BucketInvalidLocationError",
    "BucketInvalidPatternError",
    "BucketInvalidRangeError",
    "BucketNotFoundError",
    "BucketNotImplementedError",
    "BucketTransportError",
    "BucketValidationError",
    "parse_location",
    "resolve_range",
]
