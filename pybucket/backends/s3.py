"""S3-compatible remote backend.

Works with AWS S3, MinIO and other services speaking the S3 API. All calls
go through one boto3 client; botocore errors are translated into the
pybucket exception hierarchy at this seam.
"""

import io
import logging
from collections.abc import Iterator
from typing import Any, BinaryIO, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Config
from ..exceptions import (
    BucketConfigError,
    BucketNotFoundError,
    BucketNotImplementedError,
    BucketTransportError,
    BucketValidationError,
)
from ..models import ListedObject, MultipartSession, ObjectInfo
from ..paths import Location, LocationKind, RemoteLocation
from ..ranges import ByteRange

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}

# head_object response fields reported by stat, in display order
_HEAD_DETAIL_FIELDS = (
    ("ContentType", "content_type"),
    ("StorageClass", "storage"),
    ("ChecksumCRC32", "checksum_crc32"),
    ("ChecksumCRC32C", "checksum_crc32c"),
    ("ChecksumSHA1", "checksum_sha1"),
    ("ChecksumSHA256", "checksum_sha256"),
    ("ServerSideEncryption", "server_side_encryption"),
    ("CacheControl", "cache_control"),
    ("Expires", "expires"),
)


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def strip_etag(etag: Optional[str]) -> Optional[str]:
    """Remove the surrounding quotes S3 puts around ETags."""
    if etag is None:
        return None
    return etag.strip('"')


class S3Backend:
    """Storage backend over an S3-compatible object store."""

    kind = LocationKind.REMOTE

    def __init__(self, config: Optional[Config] = None, client: Any = None):
        """Initialize the backend.

        Args:
            config: Connection settings (endpoint, region, profile, TLS)
            client: Pre-built boto3 S3 client, built from ``config`` on first
                use if None
        """
        self.config = config or Config()
        self._client = client

    @staticmethod
    def _build_client(config: Config) -> Any:
        """Create a boto3 S3 client from the runtime configuration.

        Raises:
            BucketConfigError: If the profile cannot be loaded
        """
        try:
            session = boto3.session.Session(
                profile_name=config.profile, region_name=config.region
            )
        except BotoCoreError as e:
            raise BucketConfigError(f"Cannot create S3 session: {e}") from e
        kwargs: dict[str, Any] = {}
        if config.endpoint_url:
            kwargs["endpoint_url"] = config.endpoint_url
            kwargs["config"] = BotoConfig(s3={"addressing_style": "path"})
        if not config.verify_ssl:
            kwargs["verify"] = False

        logger.debug(
            f"Creating S3 client (endpoint={config.endpoint_url}, "
            f"region={config.region}, profile={config.profile})"
        )
        return session.client("s3", **kwargs)

    @property
    def client(self) -> Any:
        """Get or create the boto3 S3 client."""
        if self._client is None:
            self._client = self._build_client(self.config)
        return self._client

    def _remote(self, location: Location) -> RemoteLocation:
        if not isinstance(location, RemoteLocation):
            raise BucketNotImplementedError(
                f"S3 backend cannot handle local path {location}"
            )
        return location

    def _translate(self, error: Exception, location: Location, action: str) -> Exception:
        """Map a botocore error onto the pybucket exception hierarchy."""
        if isinstance(error, ClientError) and _error_code(error) in _NOT_FOUND_CODES:
            return BucketNotFoundError(
                str(location), f"{location} does not exist"
            )
        return BucketTransportError(f"Failed to {action} {location}: {error}")

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def stat(self, location: Location, checksum: bool = False) -> ObjectInfo:
        """Return object metadata from ``head_object``.

        A location without a key describes the bucket itself.
        """
        remote = self._remote(location)
        if not remote.key:
            return self._stat_bucket(remote)

        params: dict[str, Any] = {"Bucket": remote.bucket, "Key": remote.key}
        if checksum:
            params["ChecksumMode"] = "ENABLED"
        logger.debug(f"HEAD {remote}")
        try:
            response = self.client.head_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, remote, "stat") from e

        details: dict[str, Any] = {}
        for field_name, detail_name in _HEAD_DETAIL_FIELDS:
            value = response.get(field_name)
            if value:
                details[detail_name] = value
        metadata = response.get("Metadata")
        if metadata:
            details["metadata"] = dict(metadata)

        return ObjectInfo(
            size=int(response.get("ContentLength", 0)),
            modified_at=response.get("LastModified"),
            digest=strip_etag(response.get("ETag")),
            kind="file",
            details=details,
        )

    def _stat_bucket(self, remote: RemoteLocation) -> ObjectInfo:
        logger.debug(f"HEAD bucket {remote.bucket}")
        try:
            self.client.head_bucket(Bucket=remote.bucket)
            location = self.client.get_bucket_location(Bucket=remote.bucket)
            versioning = self.client.get_bucket_versioning(Bucket=remote.bucket)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, remote, "stat bucket") from e

        # us-east-1 is reported as an empty location constraint
        region = location.get("LocationConstraint") or "us-east-1"
        return ObjectInfo(
            size=0,
            kind="bucket",
            details={
                "region": region,
                "versioning": versioning.get("Status") or "Disabled",
            },
        )

    def list_buckets(self) -> list[ListedObject]:
        """List all buckets visible to the configured credentials."""
        logger.debug("Listing buckets")
        try:
            response = self.client.list_buckets()
        except (ClientError, BotoCoreError) as e:
            raise BucketTransportError(f"Failed to list buckets: {e}") from e

        return [
            ListedObject(
                key=bucket["Name"],
                last_modified=bucket.get("CreationDate"),
                is_prefix=True,
            )
            for bucket in response.get("Buckets", [])
        ]

    def list(self, location: Location, recursive: bool = True) -> Iterator[ListedObject]:
        """List objects under the key prefix, following continuation tokens.

        Args:
            location: Bucket and key prefix
            recursive: If False, list with a ``/`` delimiter and yield common
                prefixes as ``is_prefix`` entries

        Yields:
            ListedObject per object (and per common prefix)
        """
        remote = self._remote(location)
        params: dict[str, Any] = {"Bucket": remote.bucket}
        if remote.key:
            params["Prefix"] = remote.key
        if not recursive:
            params["Delimiter"] = "/"

        token: Optional[str] = None
        page = 0
        while True:
            if token:
                params["ContinuationToken"] = token
            page += 1
            logger.debug(f"Listing {remote} page {page}")
            try:
                response = self.client.list_objects_v2(**params)
            except (ClientError, BotoCoreError) as e:
                raise self._translate(e, remote, "list") from e

            for prefix in response.get("CommonPrefixes", []):
                yield ListedObject(key=prefix["Prefix"], is_prefix=True)
            for obj in response.get("Contents", []):
                yield ListedObject(
                    key=obj["Key"],
                    size=int(obj.get("Size", 0)),
                    digest=strip_etag(obj.get("ETag")),
                    last_modified=obj.get("LastModified"),
                )

            if not response.get("IsTruncated"):
                break
            token = response.get("NextContinuationToken")
            if not token:
                break

    # ------------------------------------------------------------------
    # Data transfer
    # ------------------------------------------------------------------

    def open_range_reader(
        self,
        location: Location,
        start: Optional[int] = None,
        length: Optional[int] = None,
        checksum: bool = False,
    ) -> BinaryIO:
        """Open the object body, restricted to a byte range if given.

        A range starting past the end of the object (HTTP 416) reads as an
        empty stream.
        """
        remote = self._remote(location)
        if not remote.key:
            raise BucketValidationError(f"{remote} does not name an object")
        if length == 0:
            return io.BytesIO(b"")

        params: dict[str, Any] = {"Bucket": remote.bucket, "Key": remote.key}
        range_header = ByteRange(start, length).to_header()
        if range_header:
            params["Range"] = range_header
        if checksum:
            params["ChecksumMode"] = "ENABLED"

        logger.debug(f"GET {remote} range={params.get('Range')}")
        try:
            response = self.client.get_object(**params)
        except ClientError as e:
            if _error_code(e) == "InvalidRange":
                logger.debug(f"Range past end of {remote}, returning empty stream")
                return io.BytesIO(b"")
            raise self._translate(e, remote, "read") from e
        except BotoCoreError as e:
            raise self._translate(e, remote, "read") from e
        return response["Body"]

    def put(
        self,
        location: Location,
        stream: BinaryIO,
        size_hint: Optional[int] = None,
        checksum_algorithm: Optional[str] = None,
    ) -> None:
        """Upload an object in a single request."""
        remote = self._remote(location)
        params: dict[str, Any] = {
            "Bucket": remote.bucket,
            "Key": remote.key,
            "Body": stream,
        }
        if size_hint is not None:
            params["ContentLength"] = size_hint
        if checksum_algorithm:
            params["ChecksumAlgorithm"] = checksum_algorithm

        logger.debug(f"PUT {remote} ({size_hint} bytes)")
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, remote, "upload") from e

    def begin_multipart(self, location: Location) -> MultipartSession:
        remote = self._remote(location)
        try:
            response = self.client.create_multipart_upload(
                Bucket=remote.bucket, Key=remote.key
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, remote, "start multipart upload to") from e

        upload_id = response.get("UploadId")
        if not upload_id:
            raise BucketTransportError("S3 response missing UploadId")
        logger.debug(f"Started multipart upload {upload_id} for {remote}")
        return MultipartSession(location=remote, upload_id=str(upload_id))

    def upload_part(
        self, session: MultipartSession, part_number: int, data: bytes
    ) -> str:
        remote = self._remote(session.location)
        try:
            response = self.client.upload_part(
                Bucket=remote.bucket,
                Key=remote.key,
                UploadId=session.upload_id,
                PartNumber=part_number,
                Body=data,
            )
        except (ClientError, BotoCoreError) as e:
            raise BucketTransportError(
                f"Failed to upload part {part_number} of {remote}: {e}"
            ) from e

        etag = response.get("ETag")
        if not etag:
            raise BucketTransportError(f"S3 response missing ETag for part {part_number}")
        return etag

    def complete_multipart(self, session: MultipartSession) -> None:
        remote = self._remote(session.location)
        parts = [
            {"ETag": part.etag, "PartNumber": part.part_number}
            for part in sorted(session.parts, key=lambda p: p.part_number)
        ]
        try:
            self.client.complete_multipart_upload(
                Bucket=remote.bucket,
                Key=remote.key,
                UploadId=session.upload_id,
                MultipartUpload={"Parts": parts},
            )
        except (ClientError, BotoCoreError) as e:
            raise BucketTransportError(
                f"Failed to complete multipart upload {session.upload_id} "
                f"for {remote}: {e}"
            ) from e
        logger.debug(f"Completed multipart upload {session.upload_id} ({len(parts)} parts)")

    def abort_multipart(self, session: MultipartSession) -> None:
        remote = self._remote(session.location)
        try:
            self.client.abort_multipart_upload(
                Bucket=remote.bucket, Key=remote.key, UploadId=session.upload_id
            )
        except (ClientError, BotoCoreError) as e:
            raise BucketTransportError(
                f"Failed to abort multipart upload {session.upload_id}: {e}"
            ) from e
        logger.debug(f"Aborted multipart upload {session.upload_id}")

    def server_side_copy(self, source: Location, dest: Location) -> None:
        """Copy an object inside the store with ``copy_object``."""
        src = self._remote(source)
        dst = self._remote(dest)
        logger.debug(f"COPY {src} -> {dst}")
        try:
            self.client.copy_object(
                Bucket=dst.bucket,
                Key=dst.key,
                CopySource={"Bucket": src.bucket, "Key": src.key},
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, src, "copy") from e

    def delete(self, location: Location) -> None:
        remote = self._remote(location)
        logger.debug(f"DELETE {remote}")
        try:
            self.client.delete_object(Bucket=remote.bucket, Key=remote.key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, remote, "delete") from e
