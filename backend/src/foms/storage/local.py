"""Local filesystem storage provider.

Stores photos as plain files under <root>/<container_name>. The web layer
serves that directory at /<container_name>/, which is what url_for returns.
Disk I/O runs in a worker thread so the event loop keeps serving requests.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .port import StorageError, StorageProvider, generate_unique_name, validate_name

logger = logging.getLogger(__name__)


class LocalFileStorageProvider(StorageProvider):
    """StorageProvider backed by a directory on local disk."""

    def __init__(self, root: Union[str, Path], container_name: str = "photos"):
        """Initialize local storage provider.

        The directory is not created here; the first upload creates it.

        Args:
            root: Base directory (e.g. the web root)
            container_name: Sub-directory holding the photos
        """
        self.container_name = validate_name(container_name)
        self.base_path = Path(root) / self.container_name

    def _path_for(self, name: str) -> Path:
        return self.base_path / validate_name(name)

    def _ensure_base_path(self) -> None:
        if not self.base_path.is_dir():
            try:
                self.base_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(f"Failed to create upload directory {self.base_path}: {e}")
            logger.info(f"Created upload directory: {self.base_path}")

    def _write(self, stream: BinaryIO, name: str) -> None:
        self._ensure_base_path()
        path = self.base_path / name

        try:
            # "xb" refuses to overwrite, so a name collision can never clobber a photo
            out = open(path, "xb")
        except OSError as e:
            raise StorageError(f"Failed to create file {name}: {e}")

        try:
            with out:
                shutil.copyfileobj(stream, out)
        except OSError as e:
            logger.error(f"Local upload failed: name={name}, error={e}")
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            raise StorageError(f"Failed to write file {name}: {e}")

    async def upload(self, stream: BinaryIO, original_name: str, content_type: str) -> str:
        name = generate_unique_name(original_name)

        if hasattr(stream, "seekable") and stream.seekable():
            stream.seek(0)

        await asyncio.to_thread(self._write, stream, name)

        logger.debug(
            f"Uploaded file to local storage: name={name}, "
            f"original={original_name}, content_type={content_type}"
        )
        return name

    def _open(self, path: Path) -> Optional[BinaryIO]:
        try:
            return open(path, "rb")
        except FileNotFoundError:
            return None

    async def download(self, name: str) -> Optional[BinaryIO]:
        path = self._path_for(name)
        try:
            stream = await asyncio.to_thread(self._open, path)
        except OSError as e:
            raise StorageError(f"Failed to read file {name}: {e}")

        if stream is None:
            logger.warning(f"File not found in local storage: {name}")
        return stream

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    async def delete(self, name: str) -> bool:
        path = self._path_for(name)
        try:
            deleted = await asyncio.to_thread(self._unlink, path)
        except OSError as e:
            logger.error(f"Error deleting file from local storage: name={name}, error={e}")
            raise StorageError(f"Failed to delete file {name}: {e}")

        if deleted:
            logger.debug(f"Deleted file from local storage: {name}")
        else:
            logger.warning(f"File not found for deletion: {name}")
        return deleted

    async def exists(self, name: str) -> bool:
        path = self._path_for(name)
        try:
            return await asyncio.to_thread(path.is_file)
        except OSError as e:
            raise StorageError(f"Failed to stat file {name}: {e}")

    def url_for(self, name: str) -> str:
        return f"/{self.container_name}/{validate_name(name)}"
