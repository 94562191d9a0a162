"""Location parsing and key helpers.

A location is either a local filesystem path or a ``(bucket, key)`` pair
written as ``s3://bucket/key``. Parsing never touches the filesystem or the
network.
"""

import os
import posixpath
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from .exceptions import BucketInvalidLocationError, BucketValidationError

REMOTE_SCHEME = "s3://"


class LocationKind(str, Enum):
    """Backend kind a location belongs to."""

    LOCAL = "local"
    """Local filesystem path"""

    REMOTE = "remote"
    """Object in a remote bucket"""


@dataclass(frozen=True)
class LocalLocation:
    """A path on the local filesystem."""

    path: str

    @property
    def kind(self) -> LocationKind:
        return LocationKind.LOCAL

    @property
    def uri(self) -> str:
        return self.path

    @property
    def name(self) -> str:
        """Base name of the path (trailing separators ignored)."""
        return os.path.basename(self.path.rstrip("/" + os.sep))

    def child(self, relative_path: str) -> "LocalLocation":
        """Location of a ``/``-separated relative path below this one.

        Raises:
            BucketValidationError: If the relative path would leave this
                directory through a ``..`` component
        """
        parts = [p for p in relative_path.split("/") if p and p != "."]
        if ".." in parts:
            raise BucketValidationError(
                f"Refusing to write '{relative_path}' outside of '{self.path}'"
            )
        return LocalLocation(str(Path(self.path).joinpath(*parts)))

    def __str__(self) -> str:
        return self.uri


@dataclass(frozen=True)
class RemoteLocation:
    """An object (or key prefix) inside a remote bucket."""

    bucket: str
    key: str = ""

    @property
    def kind(self) -> LocationKind:
        return LocationKind.REMOTE

    @property
    def uri(self) -> str:
        if self.key:
            return f"{REMOTE_SCHEME}{self.bucket}/{self.key}"
        return f"{REMOTE_SCHEME}{self.bucket}"

    @property
    def name(self) -> str:
        """Last ``/``-separated component of the key."""
        return posixpath.basename(self.key.rstrip("/"))

    def child(self, relative_path: str) -> "RemoteLocation":
        """Location of a relative key below this prefix."""
        return RemoteLocation(self.bucket, join_key(self.key, relative_path))

    def __str__(self) -> str:
        return self.uri


Location = Union[LocalLocation, RemoteLocation]


def parse_location(value: str) -> Location:
    """Parse a location string.

    Args:
        value: ``s3://bucket[/key]`` or a local path

    Returns:
        RemoteLocation for scheme-prefixed strings, LocalLocation otherwise

    Raises:
        BucketInvalidLocationError: If a remote URI has no bucket name

    Examples:
        >>> parse_location("s3://my-bucket/path/to/file.txt")
        RemoteLocation(bucket='my-bucket', key='path/to/file.txt')
        >>> parse_location("s3://my-bucket")
        RemoteLocation(bucket='my-bucket', key='')
        >>> parse_location("./data")
        LocalLocation(path='./data')
    """
    if not value.startswith(REMOTE_SCHEME):
        return LocalLocation(value)

    rest = value[len(REMOTE_SCHEME) :]
    if not rest:
        raise BucketInvalidLocationError(
            f"Invalid location '{value}': URI must contain a bucket name"
        )

    bucket, _, key = rest.partition("/")
    if not bucket:
        raise BucketInvalidLocationError(
            f"Invalid location '{value}': bucket name cannot be empty"
        )
    return RemoteLocation(bucket=bucket, key=key)


def normalize_key(key: str) -> str:
    """Remove leading slashes from a key."""
    return key.lstrip("/")


def join_key(prefix: str, name: str) -> str:
    """Join a key prefix and a name with exactly one separator.

    Examples:
        >>> join_key("prefix", "file.txt")
        'prefix/file.txt'
        >>> join_key("prefix/", "file.txt")
        'prefix/file.txt'
        >>> join_key("", "/file.txt")
        'file.txt'
    """
    if not prefix:
        return normalize_key(name)
    if prefix.endswith("/"):
        return f"{prefix}{normalize_key(name)}"
    return f"{prefix}/{normalize_key(name)}"


def relative_key(key: str, prefix: str) -> str:
    """Strip a listing prefix and one leading separator from a key.

    Examples:
        >>> relative_key("photos/2024/a.jpg", "photos")
        '2024/a.jpg'
        >>> relative_key("photos/2024/a.jpg", "photos/")
        '2024/a.jpg'
    """
    if prefix and key.startswith(prefix):
        key = key[len(prefix) :]
    if key.startswith("/"):
        key = key[1:]
    return key
