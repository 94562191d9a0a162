"""Configuration loading for pybucket.

Connection settings come from command line overrides first, then from the
standard AWS environment variables. Multipart settings are additionally read
from the AWS config file (``AWS_CONFIG_FILE`` or ``~/.aws/config``), either
from the active profile (flat or nested under ``s3 =``) or from an ``[s3]``
section.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from botocore.configloader import load_config
from botocore.exceptions import BotoCoreError

from .exceptions import BucketConfigError
from .utils import DEFAULT_CHUNK_SIZE, DEFAULT_MULTIPART_THRESHOLD

logger = logging.getLogger(__name__)

_SIZE_SUFFIXES = {
    "KB": 1024,
    "K": 1024,
    "MB": 1024 * 1024,
    "M": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
    "G": 1024 * 1024 * 1024,
}


def parse_size_value(value: str) -> int:
    """Parse a size setting such as ``8MB``, ``5M`` or ``10485760``.

    Raises:
        BucketConfigError: If the value is not a valid size
    """
    text = value.strip().upper()
    if text.isdigit():
        return int(text)

    # Longest suffixes first so "MB" is not read as "B"
    for suffix in sorted(_SIZE_SUFFIXES, key=len, reverse=True):
        if text.endswith(suffix):
            number = text[: -len(suffix)].strip()
            if number.isdigit():
                return int(number) * _SIZE_SUFFIXES[suffix]
            break

    raise BucketConfigError(f"Invalid size value: '{value}'")


def get_config_path() -> Path:
    """Return the AWS config file location."""
    env_path = os.environ.get("AWS_CONFIG_FILE")
    if env_path:
        return Path(env_path)
    return Path.home() / ".aws" / "config"


def load_multipart_settings(
    profile: str = "default", config_path: Optional[Path] = None
) -> tuple[Optional[int], Optional[int]]:
    """Read multipart threshold and chunk size from the AWS config file.

    Args:
        profile: Profile name (``default`` maps to ``[default]``)
        config_path: Config file to read (defaults to get_config_path())

    Returns:
        ``(threshold, chunksize)``; either is None when not configured
    """
    path = config_path or get_config_path()
    if not path.exists():
        logger.debug(f"AWS config file not found at {path}")
        return None, None

    try:
        parsed = load_config(str(path))
    except BotoCoreError as e:
        raise BucketConfigError(f"Failed to parse {path}: {e}") from e

    candidates: list[dict] = []
    # Sections that are not profiles stay at the top level
    if isinstance(parsed.get("s3"), dict):
        candidates.append(parsed["s3"])
    profile_items = parsed.get("profiles", {}).get(profile)
    if profile_items:
        if isinstance(profile_items.get("s3"), dict):
            candidates.append(profile_items["s3"])
        candidates.append(profile_items)

    threshold: Optional[int] = None
    chunksize: Optional[int] = None
    # Later candidates are more specific and win
    for settings in candidates:
        if "multipart_threshold" in settings:
            threshold = parse_size_value(settings["multipart_threshold"])
        if "multipart_chunksize" in settings:
            chunksize = parse_size_value(settings["multipart_chunksize"])

    logger.debug(
        f"Loaded multipart settings from {path}: "
        f"threshold={threshold}, chunksize={chunksize}"
    )
    return threshold, chunksize


@dataclass
class Config:
    """Runtime settings for one invocation."""

    endpoint_url: Optional[str] = None
    """Custom S3-compatible endpoint"""

    region: Optional[str] = None
    """Region name passed to the client"""

    profile: Optional[str] = None
    """Named profile from the shared credentials/config files"""

    verify_ssl: bool = True
    """Verify TLS certificates"""

    debug: bool = False
    """Enable debug logging"""

    multipart_threshold: int = DEFAULT_MULTIPART_THRESHOLD
    """Files at least this large are uploaded in parts"""

    multipart_chunksize: int = DEFAULT_CHUNK_SIZE
    """Size of each uploaded part"""

    def __post_init__(self) -> None:
        if self.multipart_chunksize < 1:
            raise BucketConfigError(
                f"multipart_chunksize must be positive, got {self.multipart_chunksize}"
            )
        if self.multipart_threshold < 0:
            raise BucketConfigError(
                f"multipart_threshold must not be negative, "
                f"got {self.multipart_threshold}"
            )

    @classmethod
    def load(
        cls,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        verify_ssl: bool = True,
        debug: bool = False,
        config_path: Optional[Path] = None,
    ) -> "Config":
        """Build a Config from overrides, environment and the AWS config file.

        Args:
            endpoint_url: Override for AWS_ENDPOINT_URL
            region: Override for AWS_REGION
            profile: Override for AWS_PROFILE
            verify_ssl: Whether to verify TLS certificates
            debug: Whether debug logging is enabled
            config_path: AWS config file to read multipart settings from

        Returns:
            Populated Config
        """
        profile = profile or os.environ.get("AWS_PROFILE")
        threshold, chunksize = load_multipart_settings(
            profile or "default", config_path
        )

        return cls(
            endpoint_url=endpoint_url or os.environ.get("AWS_ENDPOINT_URL"),
            region=region or os.environ.get("AWS_REGION"),
            profile=profile,
            verify_ssl=verify_ssl,
            debug=debug,
            multipart_threshold=(
                threshold if threshold is not None else DEFAULT_MULTIPART_THRESHOLD
            ),
            multipart_chunksize=(
                chunksize if chunksize is not None else DEFAULT_CHUNK_SIZE
            ),
        )
