"""Data models shared by the storage backends and engines."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .exceptions import BucketValidationError
from .paths import Location

CHECKSUM_MODES = ("ENABLED",)
CHECKSUM_ALGORITHMS = ("CRC32", "CRC32C", "SHA1", "SHA256")


@dataclass
class ListedObject:
    """One entry produced by a backend listing."""

    key: str
    """Full key (remote) or full path (local) of the entry"""

    size: int = 0
    """Size in bytes (0 for common prefixes)"""

    digest: Optional[str] = None
    """Content fingerprint if the backend supplies one for free (ETag)"""

    last_modified: Optional[datetime] = None
    """Last modification time if known"""

    is_prefix: bool = False
    """True for a synthetic common prefix in a non-recursive listing"""


@dataclass
class ObjectInfo:
    """Result of a ``stat`` call on one location."""

    size: int
    """Size in bytes"""

    modified_at: Optional[datetime] = None
    """Last modification time"""

    digest: Optional[str] = None
    """MD5 (local, on request) or ETag (remote)"""

    kind: str = "file"
    """One of ``file``, ``directory``, ``symbolic link`` or ``bucket``"""

    details: dict[str, Any] = field(default_factory=dict)
    """Extended, backend-specific attributes in display order"""


@dataclass
class ObjectMetadata:
    """Metadata collected for one entry of a diff."""

    relative_key: str
    size: int
    digest: Optional[str] = None


@dataclass(frozen=True)
class CompletedPart:
    """A part uploaded during a multipart upload."""

    part_number: int
    etag: str


@dataclass
class MultipartSession:
    """An in-progress multipart upload owned by a single transfer."""

    location: Location
    upload_id: str
    parts: list[CompletedPart] = field(default_factory=list)


@dataclass(frozen=True)
class ChecksumOptions:
    """Integrity checksum settings for single-object transfers."""

    mode: Optional[str] = None
    algorithm: Optional[str] = None

    @classmethod
    def parse(
        cls, mode: Optional[str] = None, algorithm: Optional[str] = None
    ) -> "ChecksumOptions":
        """Validate and normalize user supplied checksum options.

        Raises:
            BucketValidationError: If mode or algorithm is not recognized
        """
        if mode is not None:
            mode = mode.upper()
            if mode not in CHECKSUM_MODES:
                raise BucketValidationError(
                    f"Invalid checksum mode: {mode}. Use ENABLED"
                )
        if algorithm is not None:
            algorithm = algorithm.upper()
            if algorithm not in CHECKSUM_ALGORITHMS:
                raise BucketValidationError(
                    f"Invalid checksum algorithm: {algorithm}. "
                    "Use CRC32, CRC32C, SHA1, or SHA256"
                )
        return cls(mode=mode, algorithm=algorithm)

    @property
    def enabled(self) -> bool:
        return self.mode == "ENABLED"

    @property
    def upload_algorithm(self) -> Optional[str]:
        """Algorithm to request on upload, CRC32 unless one was chosen."""
        if not self.enabled:
            return None
        return self.algorithm or "CRC32"
