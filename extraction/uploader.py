"""Concurrent hosting of file attachments for document extraction."""

import asyncio
import base64
import binascii
import logging
from typing import Optional, Protocol, runtime_checkable

from config.settings import Settings
from models.document import DocumentRef

logger = logging.getLogger(__name__)


@runtime_checkable
class FileHost(Protocol):
    """External file hosting. Returns a retrievable URL or None."""

    async def upload(self, data: bytes, name: str, media_type: str) -> Optional[str]:
        ...


def is_data_uri(ref: str) -> bool:
    return isinstance(ref, str) and ref.startswith("data:")


def reference_kind(ref) -> str:
    if isinstance(ref, str):
        if ref.startswith("data:"):
            return "data"
        if ref.startswith("http"):
            return "http"
    return "other"


class DocumentUploader:
    """Turns file attachments into references an extraction call can read.

    Each attachment prefers the file host's URL and falls back to a data URI
    when hosting is unavailable, fails or times out. Uploads run concurrently,
    at most ``upload_concurrency`` at a time.
    """

    def __init__(self, file_host: Optional[FileHost] = None, settings: Optional[Settings] = None):
        self.file_host = file_host
        self.settings = settings or Settings()

    async def upload(self, doc: DocumentRef) -> Optional[str]:
        """Return a URL or data URI for one attachment, or None."""
        src = doc.source
        if src.get("data"):
            data_uri = f"data:{doc.media_type};base64,{src['data']}"
            if self.file_host is None:
                return data_uri
            try:
                payload = base64.b64decode(src["data"], validate=True)
            except (binascii.Error, ValueError) as e:
                logger.warning("Attachment %s is not valid base64: %s", doc.name, e)
                return None
            try:
                url = await asyncio.wait_for(
                    self.file_host.upload(payload, doc.name, doc.media_type),
                    timeout=self.settings.upload_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning("Upload of %s timed out, using data URI", doc.name)
                return data_uri
            except Exception as e:
                logger.warning("Upload of %s failed, using data URI: %s", doc.name, e)
                return data_uri
            if url:
                logger.debug("Uploaded %s", doc.name)
                return url
            logger.debug("File host returned no URL for %s, using data URI", doc.name)
            return data_uri
        if src.get("url"):
            return src["url"]
        logger.debug("Attachment %s has no usable source", doc.name)
        return None

    async def upload_all(self, docs: list[DocumentRef]) -> list[Optional[str]]:
        """Upload all attachments concurrently, preserving order."""
        semaphore = asyncio.Semaphore(self.settings.upload_concurrency)

        async def _bounded(doc: DocumentRef) -> Optional[str]:
            async with semaphore:
                return await self.upload(doc)

        logger.info("Uploading %d attachments (concurrency=%d)", len(docs), self.settings.upload_concurrency)
        return list(await asyncio.gather(*(_bounded(d) for d in docs)))
