from __future__ import annotations

from abc import ABC, abstractmethod

from .payload import UpstreamPayload

# Define an abstract interface for image generation clients so different
# upstream providers (or test doubles) can be used interchangeably.


class ImageGenerationClient(ABC):
    """Abstract interface for an image generation client.

    Implementations must provide a synchronous submit method
    used by the rest of the application.
    """

    @abstractmethod
    def submit(self, payload: UpstreamPayload) -> str:
        """Send a prepared payload upstream and return the base64 image.

        Should raise an ImageProxyError subclass on failure.
        """

    def close(self) -> None:
        """Release any connections held by the client."""
