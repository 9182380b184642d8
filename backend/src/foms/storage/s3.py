"""S3 Storage Provider - remote object store implementation using boto3.

Provides photo storage on AWS S3, MinIO and other S3-compatible services.
boto3 is blocking, so every call runs in a worker thread.

Architecture: Hexagonal - Adapter implementation of StorageProvider
"""

import asyncio
import logging
from io import BytesIO
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from .port import StorageError, StorageProvider, generate_unique_name, validate_name

logger = logging.getLogger(__name__)

# Error codes S3/MinIO use for a missing object or bucket
_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", "Unknown"))


class S3StorageProvider(StorageProvider):
    """S3-compatible storage provider using boto3.

    Features:
    - Bucket created on first upload if missing
    - Content type stored as object metadata
    - url_for builds a stable object URL (optionally behind a CDN base URL)

    Example:
        storage = S3StorageProvider(
            endpoint_url="http://localhost:9000",
            access_key="minioadmin",
            secret_key="minioadmin",
            bucket_name="photos",
        )
        name = await storage.upload(f, "IMG_0042.jpg", "image/jpeg")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        base_url: Optional[str] = None,
    ):
        """Initialize S3 storage provider.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: Bucket holding the photos
            region: AWS region (default: 'us-east-1')
            base_url: Optional public base URL used by url_for (CDN, proxy)

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except (BotoCoreError, ValueError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.endpoint_url = endpoint_url
        self.bucket_name = bucket_name
        self.region = region
        self.base_url = base_url
        self._bucket_ready = False

        logger.info(
            f"Initialized S3 storage provider: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES:
                raise
            kwargs = {"Bucket": self.bucket_name}
            if self.region and self.region != "us-east-1":
                kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
            self.s3_client.create_bucket(**kwargs)
            logger.info(f"Created S3 bucket: {self.bucket_name}")
        self._bucket_ready = True

    def _put(self, name: str, body: bytes, content_type: str, original_name: str) -> None:
        self._ensure_bucket()
        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=name,
            Body=BytesIO(body),
            ContentType=content_type,
            Metadata={"original_filename": original_name or ""},
        )

    async def upload(self, stream: BinaryIO, original_name: str, content_type: str) -> str:
        name = generate_unique_name(original_name)

        if hasattr(stream, "seekable") and stream.seekable():
            stream.seek(0)
        body = stream.read()

        try:
            await asyncio.to_thread(self._put, name, body, content_type, original_name)
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(f"S3 upload failed: name={name}, error={error_code}, message={e}")
            raise StorageError(f"Failed to upload file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 upload failed: name={name}, error={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.debug(
            f"Uploaded file: name={name}, size={len(body)}, content_type={content_type}"
        )
        return name

    def _get(self, name: str) -> Optional[bytes]:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=name)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise
        return response["Body"].read()

    async def download(self, name: str) -> Optional[BinaryIO]:
        validate_name(name)
        try:
            body = await asyncio.to_thread(self._get, name)
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(f"S3 retrieval failed: name={name}, error={error_code}")
            raise StorageError(f"Failed to retrieve file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 retrieval failed: name={name}, error={e}")
            raise StorageError(f"Failed to retrieve file: {e}")

        if body is None:
            logger.warning(f"File not found: name={name}")
            return None
        return BytesIO(body)

    def _head(self, name: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=name)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise

    def _delete(self, name: str) -> bool:
        # DeleteObject succeeds for missing keys too, so existence is checked first
        if not self._head(name):
            return False
        self.s3_client.delete_object(Bucket=self.bucket_name, Key=name)
        return True

    async def delete(self, name: str) -> bool:
        validate_name(name)
        try:
            deleted = await asyncio.to_thread(self._delete, name)
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(f"S3 deletion failed: name={name}, error={error_code}")
            raise StorageError(f"Failed to delete file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 deletion failed: name={name}, error={e}")
            raise StorageError(f"Failed to delete file: {e}")

        if deleted:
            logger.debug(f"Deleted file: name={name}")
        else:
            logger.warning(f"File not found for deletion: name={name}")
        return deleted

    async def exists(self, name: str) -> bool:
        """Check existence with a HEAD request (no body transfer)."""
        validate_name(name)
        try:
            return await asyncio.to_thread(self._head, name)
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(f"S3 existence check failed: name={name}, error={error_code}")
            raise StorageError(f"Failed to check file: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to check file: {e}")

    def url_for(self, name: str) -> str:
        validate_name(name)
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{self.bucket_name}/{name}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{name}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{name}"
