"""Tests for the format helpers in :mod:`imageproxy.utils` and the error translation."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from imageproxy.errors import (
    ConfigurationError,
    ErrorCategory,
    ImageDownloadError,
    InvalidParameterError,
    UpstreamGatewayError,
)
from imageproxy.responses import (
    build_enhancement_response,
    build_error_response,
    build_generation_response,
    status_code_for,
)
from imageproxy.schemas import FetchedImage, GenerationParameters
from imageproxy.utils import build_data_uri, extension_for, mime_type_for, utc_timestamp


@pytest.mark.parametrize(
    "output_format, expected",
    [
        ("webp", "image/webp"),
        ("png", "image/png"),
        ("jpeg", "image/jpeg"),
        ("jpg", "image/jpeg"),
        ("PNG", "image/png"),
        ("JpEg", "image/jpeg"),
    ],
)
def test_mime_type_for_known_formats(output_format: str, expected: str) -> None:
    assert mime_type_for(output_format) == expected


@pytest.mark.parametrize("output_format", [None, "", "gif", "image/png", 3])
def test_mime_type_for_defaults_to_webp(output_format) -> None:
    assert mime_type_for(output_format) == "image/webp"


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("image/webp", ".webp"),
        ("image/png", ".png"),
        ("image/jpeg", ".jpg"),
        ("image/jpg", ".jpg"),
        ("application/octet-stream", ".bin"),
        ("IMAGE/PNG", ".png"),
        ("image/png; charset=binary", ".png"),
        ("image/jpeg;q=0.9", ".jpg"),
    ],
)
def test_extension_for_known_content_types(content_type: str, expected: str) -> None:
    assert extension_for(content_type) == expected


@pytest.mark.parametrize("content_type", [None, "", ";", "text/html", "image/gif", 12])
def test_extension_for_defaults_to_bin(content_type) -> None:
    assert extension_for(content_type) == ".bin"


@pytest.mark.parametrize("output_format", ["webp", "png", "jpeg"])
def test_extension_for_understands_every_mime_type_we_emit(output_format: str) -> None:
    assert extension_for(mime_type_for(output_format)) in {".webp", ".png", ".jpg"}


def test_build_data_uri() -> None:
    assert build_data_uri("image/webp", "AAAA") == "data:image/webp;base64,AAAA"


def test_utc_timestamp_is_iso_8601_with_milliseconds() -> None:
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


# ----------------------------------------------------------------------
# Response / error translation
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "category, expected",
    [
        (ErrorCategory.VALIDATION, 400),
        (ErrorCategory.CONFIGURATION, 500),
        (ErrorCategory.UPSTREAM_GATEWAY, 502),
        (ErrorCategory.DOWNLOAD, 400),
    ],
)
def test_status_code_for_every_category(category: ErrorCategory, expected: int) -> None:
    assert status_code_for(category) == expected


@pytest.mark.parametrize(
    "exc, expected",
    [
        (InvalidParameterError("Prompt is required and must be a non-empty string"), 400),
        (ConfigurationError("STABILITY_API_KEY environment variable is required"), 500),
        (UpstreamGatewayError("Stability API error: 429 - slow down"), 502),
        (ImageDownloadError("Image download failed: 404 Not Found"), 400),
        (RuntimeError("something else"), 500),
    ],
)
def test_build_error_response_maps_status_and_keeps_message(exc: Exception, expected: int) -> None:
    status_code, body = build_error_response(exc, "Image generation failed")

    assert status_code == expected
    assert body.error == "Image generation failed"
    assert body.message == str(exc)
    assert body.timestamp.endswith("Z")


def test_status_does_not_depend_on_message_text() -> None:
    # a download error mentioning the API key is still a download error
    status_code, _ = build_error_response(
        ImageDownloadError("STABILITY_API_KEY Stability API error"), "Image enhancement failed"
    )

    assert status_code == 400


def test_build_generation_response() -> None:
    params = GenerationParameters(prompt="A cat", aspect_ratio="16:9", output_format="webp")

    response = build_generation_response(params, "AAAA")

    assert response.image_url == "data:image/webp;base64,AAAA"
    assert response.metadata.prompt == "A cat"
    assert response.metadata.aspect_ratio == "16:9"
    assert response.metadata.output_format == "webp"


def test_build_enhancement_response_echoes_source_details() -> None:
    params = GenerationParameters(prompt="Sharper", output_format="png", strength=0.0)
    source = FetchedImage(content=b"12345", content_type="image/jpeg")

    response = build_enhancement_response(params, "BBBB", "https://example.org/a.jpg", source)
    dumped = response.model_dump(exclude_unset=True)

    assert dumped["image_url"] == "data:image/png;base64,BBBB"
    assert dumped["metadata"]["strength"] == 0.0
    assert dumped["metadata"]["input_image_url"] == "https://example.org/a.jpg"
    assert dumped["metadata"]["input_image_type"] == "image/jpeg"
    assert dumped["metadata"]["input_image_size_bytes"] == 5


def test_build_enhancement_response_leaves_missing_strength_unset() -> None:
    params = GenerationParameters(prompt="Sharper")
    source = FetchedImage(content=b"1", content_type="image/png")

    response = build_enhancement_response(params, "BBBB", None, source)

    assert "strength" not in response.model_dump(exclude_unset=True)["metadata"]
