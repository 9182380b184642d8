"""Photo blob storage: port, local and S3 providers, startup selection."""

from .port import StorageError, StorageProvider, generate_unique_name, validate_name
from .local import LocalFileStorageProvider
from .s3 import S3StorageProvider
from .factory import RemoteStorageConfig, build_storage_provider, parse_connection_string

__all__ = [
    "StorageError",
    "StorageProvider",
    "generate_unique_name",
    "validate_name",
    "LocalFileStorageProvider",
    "S3StorageProvider",
    "RemoteStorageConfig",
    "build_storage_provider",
    "parse_connection_string",
]
