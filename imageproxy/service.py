"""Domain logic for turning proxy requests into upstream image API calls."""

from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Any, Mapping, Optional

from .aiservices.imagefetcher import ImageFetcher
from .aiservices.imagegenerationclient import ImageGenerationClient
from .aiservices.payload import build_upstream_payload
from .aiservices.stabilityimagegenerationclient import StabilityImageGenerationClient
from .config import Settings, get_settings
from .errors import ImageDownloadError
from .responses import build_enhancement_response, build_generation_response
from .schemas import (
    EnhanceImageResponse,
    FetchedImage,
    GenerateImageResponse,
    GenerationParameters,
)
from .validation import validate_image_url, validate_params

logger = logging.getLogger(__name__)

_MIB = 1024 * 1024


def _whole_megabytes(size_bytes: int) -> int:
    # halves round up
    return math.floor(size_bytes / _MIB + 0.5)


class ImageProxyService:
    """High-level orchestrator for the generate and enhance operations."""

    def __init__(
        self,
        settings: Settings | None = None,
        image_client: Optional[ImageGenerationClient] = None,
        image_fetcher: Optional[ImageFetcher] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._image_client = image_client or StabilityImageGenerationClient(self.settings)
        self._image_fetcher = image_fetcher or ImageFetcher(self.settings)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def generate_image(self, data: Mapping[str, Any]) -> GenerateImageResponse:
        params = validate_params(data)
        logger.info(
            "Generating image (aspect_ratio=%s, output_format=%s)",
            params.aspect_ratio,
            params.output_format,
        )
        # strength only applies to enhancement
        payload = build_upstream_payload(params.model_copy(update={"strength": None}))
        encoded = self._image_client.submit(payload)
        return build_generation_response(params, encoded)

    # ------------------------------------------------------------------
    # Enhancement
    # ------------------------------------------------------------------
    def enhance_image(self, data: Mapping[str, Any]) -> EnhanceImageResponse:
        """
        Enhance the image referenced by ``data["image_url"]``.

        The URL is checked before the other parameters, and the image is
        downloaded only once everything else is valid.
        """
        image_url = validate_image_url(data.get("image_url"))
        params = validate_params(data)
        image = self._image_fetcher.fetch(image_url)
        return self._enhance(params, image, image_url)

    def enhance_uploaded_image(self, data: Mapping[str, Any], image: FetchedImage) -> EnhanceImageResponse:
        """Enhance an image the client uploaded as part of a multipart request."""
        params = validate_params(data)
        return self._enhance(params, image, None)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _enhance(
        self,
        params: GenerationParameters,
        image: FetchedImage,
        source_url: Optional[str],
    ) -> EnhanceImageResponse:
        self.check_image_size(image.size_bytes)
        logger.info(
            "Enhancing %s byte %s image (strength=%s)",
            image.size_bytes,
            image.content_type,
            params.strength,
        )
        encoded = self._image_client.submit(build_upstream_payload(params, image))
        return build_enhancement_response(params, encoded, source_url, image)

    def check_image_size(self, size_bytes: int) -> None:
        limit = self.settings.max_image_size_bytes
        if size_bytes > limit:
            raise ImageDownloadError(
                f"Image size ({_whole_megabytes(size_bytes)}MB) exceeds maximum "
                f"allowed size ({_whole_megabytes(limit)}MB)"
            )

    def close(self) -> None:
        """Release the HTTP connections held by the upstream client and fetcher."""
        self._image_client.close()
        self._image_fetcher.close()


@lru_cache
def get_image_service() -> ImageProxyService:
    return ImageProxyService(get_settings())
