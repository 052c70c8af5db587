"""Error taxonomy shared by the validation, download and upstream stages."""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    UPSTREAM_GATEWAY = "upstream-gateway"
    DOWNLOAD = "download"


class ImageProxyError(Exception):
    """Base class for every failure the proxy reports to its callers.

    Subclasses pin ``category`` so the HTTP layer can pick a status code
    without looking at the message.
    """

    category: ErrorCategory

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidParameterError(ImageProxyError):
    """The caller sent a missing or malformed parameter."""

    category = ErrorCategory.VALIDATION


class ConfigurationError(ImageProxyError):
    """The service is missing configuration it needs, e.g. the API key."""

    category = ErrorCategory.CONFIGURATION


class UpstreamGatewayError(ImageProxyError):
    """The upstream API rejected the request or returned an unusable body."""

    category = ErrorCategory.UPSTREAM_GATEWAY


class ImageDownloadError(ImageProxyError):
    """The source image could not be retrieved or is too large."""

    category = ErrorCategory.DOWNLOAD
