"""Storage backends for local files and S3-compatible buckets."""

from .base import Backends, StorageBackend
from .local import BoundedReader, LocalBackend
from .s3 import S3Backend, strip_etag

__all__ = [
    "Backends",
    "BoundedReader",
    "LocalBackend",
    "S3Backend",
    "StorageBackend",
    "strip_etag",
]
