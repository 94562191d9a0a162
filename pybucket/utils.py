"""Utility functions and constants for pybucket."""

import hashlib
import mimetypes
import zlib
from pathlib import Path
from typing import BinaryIO, Union

import crc32c as crc32c_lib

# =============================================================================
# Constants for transfer operations
# =============================================================================

# Part size for multipart uploads (8 MB)
DEFAULT_CHUNK_SIZE: int = 8 * 1024 * 1024

# Threshold for using multipart upload (8 MB)
DEFAULT_MULTIPART_THRESHOLD: int = 8 * 1024 * 1024

# Read buffer for streaming copies, cat and cmp (64 KB)
STREAM_CHUNK_SIZE: int = 64 * 1024

# Read buffer for hashing local files
HASH_CHUNK_SIZE: int = 8192


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


# =============================================================================
# Stream helpers
# =============================================================================


def read_exactly(stream: BinaryIO, size: int) -> bytes:
    """Read ``size`` bytes unless the stream ends first.

    Streams may return short reads before EOF; this keeps reading until the
    requested amount is collected or a read returns nothing.
    """
    if size <= 0:
        return b""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


# =============================================================================
# Hash calculation utilities
# =============================================================================


def calculate_file_checksum(path: Union[str, Path], algorithm: str = "MD5") -> str:
    """Calculate a checksum of a local file.

    Args:
        path: File to read
        algorithm: MD5, CRC32, CRC32C, SHA1 or SHA256

    Returns:
        Lowercase hex digest (CRC values zero-padded to 8 digits)

    Raises:
        ValueError: If the algorithm is unknown
    """
    algorithm = algorithm.upper()
    if algorithm in ("CRC32", "CRC32C"):
        crc = 0
        with open(path, "rb") as f:
            while True:
                chunk = f.read(HASH_CHUNK_SIZE)
                if not chunk:
                    break
                if algorithm == "CRC32":
                    crc = zlib.crc32(chunk, crc)
                else:
                    crc = crc32c_lib.crc32c(chunk, crc)
        return f"{crc & 0xFFFFFFFF:08x}"

    hashers = {"MD5": hashlib.md5, "SHA1": hashlib.sha1, "SHA256": hashlib.sha256}
    if algorithm not in hashers:
        raise ValueError(f"Unknown checksum algorithm: {algorithm}")

    hasher = hashers[algorithm]()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(HASH_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def detect_mime_type(file_path: Union[str, Path]) -> str:
    """Guess the MIME type of a file from its name.

    Returns:
        MIME type string (defaults to 'application/octet-stream')
    """
    mime_type, _ = mimetypes.guess_type(str(file_path))
    return mime_type or "application/octet-stream"
