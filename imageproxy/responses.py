"""Translation of pipeline results and failures into the external response shapes."""

from __future__ import annotations

from typing import Optional, Tuple

from fastapi import status

from .errors import ErrorCategory, ImageProxyError
from .schemas import (
    EnhanceImageResponse,
    EnhancementMetadata,
    ErrorResponse,
    FetchedImage,
    GenerateImageResponse,
    GenerationMetadata,
    GenerationParameters,
)
from .utils import build_data_uri, mime_type_for, utc_timestamp

GENERATION_FAILED = "Image generation failed"
ENHANCEMENT_FAILED = "Image enhancement failed"


def status_code_for(category: ErrorCategory) -> int:
    if category is ErrorCategory.VALIDATION:
        return status.HTTP_400_BAD_REQUEST
    if category is ErrorCategory.CONFIGURATION:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if category is ErrorCategory.UPSTREAM_GATEWAY:
        return status.HTTP_502_BAD_GATEWAY
    if category is ErrorCategory.DOWNLOAD:
        return status.HTTP_400_BAD_REQUEST
    raise ValueError(f"unhandled error category: {category!r}")


def build_generation_response(params: GenerationParameters, encoded: str) -> GenerateImageResponse:
    return GenerateImageResponse(
        image_url=build_data_uri(mime_type_for(params.output_format), encoded),
        metadata=GenerationMetadata(
            prompt=params.prompt,
            aspect_ratio=params.aspect_ratio,
            output_format=params.output_format,
            generated_at=utc_timestamp(),
        ),
    )


def build_enhancement_response(
    params: GenerationParameters,
    encoded: str,
    source_url: Optional[str],
    source: FetchedImage,
) -> EnhanceImageResponse:
    """
    Wrap an enhanced image and echo what it was derived from.

    Args:
        params (GenerationParameters): The validated request parameters.
        encoded (str): Base64 image returned by the upstream API.
        source_url (str | None): URL the source was fetched from; None for uploads.
        source (FetchedImage): The source image that was sent upstream.

    Returns:
        EnhanceImageResponse: Data URI plus metadata.
    """
    # strength stays unset (and out of the JSON) when the caller did not send one
    optional = {"strength": params.strength} if params.strength is not None else {}
    return EnhanceImageResponse(
        image_url=build_data_uri(mime_type_for(params.output_format), encoded),
        metadata=EnhancementMetadata(
            prompt=params.prompt,
            aspect_ratio=params.aspect_ratio,
            output_format=params.output_format,
            **optional,
            input_image_url=source_url,
            input_image_type=source.content_type,
            input_image_size_bytes=source.size_bytes,
            enhanced_at=utc_timestamp(),
        ),
    )


def build_error_response(exc: Exception, label: str) -> Tuple[int, ErrorResponse]:
    """Return the HTTP status and body for a failed operation."""
    if isinstance(exc, ImageProxyError):
        status_code = status_code_for(exc.category)
        message = exc.message
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        message = str(exc) or type(exc).__name__

    return status_code, ErrorResponse(error=label, message=message, timestamp=utc_timestamp())
