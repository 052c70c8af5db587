from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import Settings, get_settings
from ..errors import ImageDownloadError
from ..schemas import FetchedImage

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ImageFetcher:
    """
    Downloads a source image into memory.

    The whole body is buffered; size limits are the caller's concern.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = http_client or httpx.Client(
            timeout=self.settings.download_timeout_seconds,
            follow_redirects=True,
        )

    def fetch(self, url: str) -> FetchedImage:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            cause = str(exc) or type(exc).__name__
            logger.warning("Image download from %s failed: %s", url, cause)
            raise ImageDownloadError(f"Image download failed: {cause}") from exc

        if not response.is_success:
            logger.warning("Image download from %s returned HTTP %s", url, response.status_code)
            raise ImageDownloadError(
                f"Image download failed: {response.status_code} {response.reason_phrase}"
            )

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        content = response.content
        logger.debug("Downloaded %s bytes (%s) from %s", len(content), content_type, url)
        return FetchedImage(content=content, content_type=content_type)

    def close(self) -> None:
        self._client.close()
