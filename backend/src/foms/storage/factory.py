"""Storage provider selection and remote connection string parsing.

The provider is built once at process startup from StorageSettings and then
injected everywhere; nothing downstream branches on the provider name.

Remote connection string format (semicolon separated, keys case-insensitive):
    Endpoint=http://minio:9000;AccessKey=minioadmin;SecretKey=minioadmin;Region=us-east-1

Endpoint is omitted for AWS S3 (regional default endpoint). BaseUrl may be
added to make url_for point at a CDN or reverse proxy.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import StorageProviderKind, StorageSettings
from .local import LocalFileStorageProvider
from .port import StorageProvider
from .s3 import S3StorageProvider

logger = logging.getLogger(__name__)


@dataclass
class RemoteStorageConfig:
    """Parsed remote object store connection.

    Attributes:
        endpoint_url: S3 endpoint URL (None for AWS S3)
        access_key: Access key ID
        secret_key: Secret access key
        region: Region name (default: 'us-east-1')
        base_url: Optional public base URL for url_for
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    region: str = "us-east-1"
    base_url: Optional[str] = None


def parse_connection_string(connection_string: str) -> RemoteStorageConfig:
    """Parse a Key=Value;Key=Value connection string.

    Raises:
        ValueError: If the string is malformed or credentials are missing
    """
    if not connection_string or not connection_string.strip():
        raise ValueError("Remote storage connection string is empty")

    values = {}
    for part in connection_string.split(";"):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Malformed connection string segment: {part.split('=')[0]!r}")
        values[key.strip().lower()] = value.strip()

    access_key = values.get("accesskey")
    secret_key = values.get("secretkey")
    if not access_key or not secret_key:
        raise ValueError(
            "Remote storage connection string must contain AccessKey and SecretKey"
        )

    endpoint_url = values.get("endpoint") or None
    if endpoint_url and not endpoint_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid Endpoint: {endpoint_url}. Must start with http:// or https://"
        )

    return RemoteStorageConfig(
        endpoint_url=endpoint_url,
        access_key=access_key,
        secret_key=secret_key,
        region=values.get("region") or "us-east-1",
        base_url=values.get("baseurl") or None,
    )


def build_storage_provider(settings: StorageSettings) -> StorageProvider:
    """Create the configured storage provider.

    Args:
        settings: Storage section of the application settings

    Returns:
        StorageProvider: Local or S3 provider

    Raises:
        ValueError: If the remote configuration is incomplete
    """
    if settings.provider == StorageProviderKind.REMOTE:
        remote = parse_connection_string(settings.remote.connection_string or "")
        provider = S3StorageProvider(
            endpoint_url=remote.endpoint_url,
            access_key=remote.access_key,
            secret_key=remote.secret_key,
            bucket_name=settings.container_name,
            region=remote.region,
            base_url=remote.base_url,
        )
    else:
        provider = LocalFileStorageProvider(
            root=Path(settings.local_root),
            container_name=settings.container_name,
        )

    logger.info(
        "Storage provider selected",
        extra={"provider": settings.provider.value, "container": settings.container_name},
    )
    return provider
