# aiservices/stabilityimagegenerationclient.py
from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import Settings, get_settings
from ..errors import ConfigurationError, UpstreamGatewayError
from .imagegenerationclient import ImageGenerationClient
from .payload import UpstreamPayload

logger = logging.getLogger(__name__)

MISSING_API_KEY_MESSAGE = "STABILITY_API_KEY environment variable is required"
NO_IMAGE_MESSAGE = "No image data received from Stability API"


class StabilityImageGenerationClient(ImageGenerationClient):
    """
    Talks to the Stability AI v2beta stable-image endpoints.

    One POST per call: no retries, no partial results.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._api_key = self.settings.stability_api_key.get_secret_value().strip()
        self._url = self.settings.stability_api_url
        self._client = http_client or httpx.Client(
            timeout=self.settings.upstream_timeout_seconds,
        )

    def submit(self, payload: UpstreamPayload) -> str:
        if not self._api_key:
            raise ConfigurationError(MISSING_API_KEY_MESSAGE)

        # httpx sets the multipart Content-Type and boundary from ``files``
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

        try:
            response = self._client.post(self._url, headers=headers, files=payload.parts)
        except httpx.HTTPError as exc:
            cause = str(exc) or type(exc).__name__
            logger.warning("Stability API call failed: %s", cause)
            raise UpstreamGatewayError(f"Stability API request failed: {cause}") from exc

        if not response.is_success:
            logger.warning("Stability API returned HTTP %s", response.status_code)
            raise UpstreamGatewayError(
                f"Stability API error: {response.status_code} - {response.text}"
            )

        try:
            result = response.json()
        except ValueError:
            raise UpstreamGatewayError(NO_IMAGE_MESSAGE) from None

        image = result.get("image") if isinstance(result, dict) else None
        if not image:
            raise UpstreamGatewayError(NO_IMAGE_MESSAGE)

        return image

    def close(self) -> None:
        self._client.close()
