"""Local file storage implementation."""
import logging
import mimetypes
import os
from pathlib import Path
from typing import Optional

import aiofiles

from bookstore.domain.repositories import IStorageService, StoredObject

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class LocalStorageService(IStorageService):
    """Key-addressed file storage on the local filesystem.

    Objects live at ``<base_path>/<key>``.  Public URLs are
    ``<public_base_url>/<key>``, served back by the ``/assets`` route.
    """

    def __init__(self, base_path: str = "./storage", public_base_url: str = "/assets"):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        full_path = (self.base_path / key).resolve()
        if self.base_path not in full_path.parents:
            raise ValueError(f"Storage key escapes base path: {key}")
        return full_path

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            file_path = self._path_for(key)
            file_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(file_path, "wb") as f:
                await f.write(data)

            logger.info(f"File saved: {key}, size: {len(data)} bytes")
            return self.public_url(key)

        except OSError as e:
            logger.error(f"Failed to save file {key}: {str(e)}", exc_info=True)
            raise

    async def get(self, key: str) -> Optional[StoredObject]:
        try:
            full_path = self._path_for(key)
        except ValueError:
            logger.warning(f"Rejected storage key: {key}")
            return None
        try:
            async with aiofiles.open(full_path, "rb") as f:
                content = await f.read()
        except (FileNotFoundError, IsADirectoryError):
            logger.debug(f"File not found: {key}")
            return None
        content_type, _ = mimetypes.guess_type(full_path.name)
        logger.debug(f"File retrieved: {key}, size: {len(content)} bytes")
        return StoredObject(data=content, content_type=content_type or DEFAULT_CONTENT_TYPE)

    async def delete(self, key: str) -> bool:
        full_path = self._path_for(key)
        try:
            os.remove(full_path)
            logger.info(f"File deleted: {key}")
            return True
        except FileNotFoundError:
            logger.warning(f"File not found for deletion: {key}")
            return False

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"
