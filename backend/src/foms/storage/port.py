"""Storage Provider Port - interface for photo blob storage.

This port defines the contract every photo storage backend implements. The
backend is chosen once at startup (see factory.build_storage_provider) and
never switched per call.

Architecture: Hexagonal - port interface, adapters in local.py and s3.py
"""

import uuid
from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import BinaryIO, Optional


class StorageError(Exception):
    """Transport or IO failure talking to a storage backend.

    Raised for network, permission and disk errors. A missing blob is never
    a StorageError: download() returns None and delete()/exists() return False.
    """
    pass


def generate_unique_name(original_name: str) -> str:
    """Build a fresh storage name keeping only the original extension.

    Example:
        >>> generate_unique_name("IMG_0042.JPEG")  # doctest: +SKIP
        '3f2b9c0e8a5d4f6b9e1c7a2d4b6f8e0a.jpeg'
    """
    ext = PurePosixPath(original_name or "").suffix.lower()
    # Extensions are user input; anything odd is dropped
    if not ext[1:].isalnum():
        ext = ""
    return f"{uuid.uuid4().hex}{ext}"


def validate_name(name: str) -> str:
    """Reject names that could address something outside the container.

    Raises:
        ValueError: If name is empty or contains path components
    """
    if not name or not name.strip():
        raise ValueError("Storage name must not be empty")
    if "/" in name or "\\" in name or name in (".", "..") or "\x00" in name:
        raise ValueError(f"Invalid storage name: {name!r}")
    return name


class StorageProvider(ABC):
    """Port interface for photo blob storage.

    Key Design Principles:
    - upload() always generates the stored name; callers never choose it
    - Root location (directory/bucket) is provisioned lazily on first upload
    - Not-found is a return value, transport failure is StorageError
    - delete() is idempotent: True once, then False

    Example Usage:
        storage = build_storage_provider(settings.STORAGE)

        with open("IMG_0042.jpg", "rb") as f:
            name = await storage.upload(f, "IMG_0042.jpg", "image/jpeg")

        stream = await storage.download(name)
        deleted = await storage.delete(name)
    """

    @abstractmethod
    async def upload(self, stream: BinaryIO, original_name: str, content_type: str) -> str:
        """Store the bytes of stream under a newly generated unique name.

        Args:
            stream: Readable binary stream
            original_name: Client file name (only its extension is kept)
            content_type: MIME type recorded with the blob where supported

        Returns:
            str: The generated name; valid for download/delete/url_for

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def download(self, name: str) -> Optional[BinaryIO]:
        """Open a stored blob for reading.

        Returns:
            BinaryIO: Stream positioned at 0 (caller must close), or None if
            no blob exists under name

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete a stored blob.

        Returns:
            bool: True if the blob existed and is now gone, False if it did
            not exist

        Raises:
            StorageError: If deletion fails
        """
        pass

    @abstractmethod
    async def exists(self, name: str) -> bool:
        """Check whether a blob is stored under name.

        Raises:
            StorageError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    def url_for(self, name: str) -> str:
        """Reference usable to fetch the blob later.

        Local storage returns a relative path, remote storage an absolute URI.
        """
        pass
