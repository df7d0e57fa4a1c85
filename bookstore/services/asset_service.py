"""Cover image transfer into object storage."""

import logging
from uuid import UUID

import httpx

from bookstore.domain.repositories import IStorageService
from bookstore.domain.services import (
    AssetTransferResult,
    Degraded,
    IAssetTransferService,
    Transferred,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"
DEFAULT_EXTENSION = ".jpg"

CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
}


def extension_for(content_type: str) -> str:
    """Map a Content-Type header to a file extension, ignoring parameters."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(media_type, DEFAULT_EXTENSION)


def cover_key(book_id: UUID, extension: str) -> str:
    return f"covers/{book_id}{extension}"


class AssetTransferService(IAssetTransferService):
    """Copies externally hosted covers into our own storage.

    A cover is optional: every failure comes back as :class:`Degraded`
    carrying the original URL, never as an exception.
    """

    def __init__(self, http_client: httpx.AsyncClient, storage: IStorageService):
        self._http = http_client
        self.storage = storage

    async def transfer_cover(self, book_id: UUID, source_url: str) -> AssetTransferResult:
        try:
            response = await self._http.get(source_url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            return Degraded(fallback_url=source_url, cause=f"download failed: {exc}")

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        key = cover_key(book_id, extension_for(content_type))
        try:
            url = await self.storage.put(key, response.content, content_type)
        except Exception as exc:
            # storage backends raise their own error families (OSError, botocore)
            return Degraded(fallback_url=source_url, cause=f"storage write failed: {exc}")

        logger.info("Stored cover for book %s at %s", book_id, key)
        return Transferred(url=url)
