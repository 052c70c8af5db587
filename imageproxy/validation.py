"""Normalization and validation of user supplied generation parameters."""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

import httpx

from .errors import InvalidParameterError
from .schemas import GenerationParameters

DEFAULT_ASPECT_RATIO = "1:1"
DEFAULT_OUTPUT_FORMAT = "webp"
VALID_OUTPUT_FORMATS = ("webp", "png", "jpeg")

_ASPECT_RATIO_PATTERN = re.compile(r"[0-9]+:[0-9]+")
_ALLOWED_URL_SCHEMES = {"http", "https"}


def _parse_strength(value: Any) -> float:
    # bool is an int subclass; True must not pass as 1.0
    if isinstance(value, bool):
        raise ValueError("boolean strength")
    if isinstance(value, str):
        value = value.strip()
    strength = float(value)
    if math.isnan(strength):
        raise ValueError("NaN strength")
    return strength


def validate_params(data: Mapping[str, Any]) -> GenerationParameters:
    """
    Validate request parameters and fill in defaults.

    Args:
        data (Mapping): Raw request fields. The mapping is not modified.

    Returns:
        GenerationParameters: Trimmed prompt, checked aspect ratio,
        lowercase output format and, when supplied, the parsed strength.

    Raises:
        InvalidParameterError: If any field is missing or malformed.
    """
    prompt = data.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidParameterError("Prompt is required and must be a non-empty string")

    strength = None
    raw_strength = data.get("strength")
    if raw_strength is not None:
        try:
            strength = _parse_strength(raw_strength)
        except (OverflowError, TypeError, ValueError):
            raise InvalidParameterError("Strength must be a number between 0 and 1") from None
        if not 0.0 <= strength <= 1.0:
            raise InvalidParameterError("Strength must be a number between 0 and 1")

    aspect_ratio = data.get("aspect_ratio") or DEFAULT_ASPECT_RATIO
    if not isinstance(aspect_ratio, str) or not _ASPECT_RATIO_PATTERN.fullmatch(aspect_ratio):
        raise InvalidParameterError('Aspect ratio must be in format "width:height" (e.g., "16:9")')

    output_format = data.get("output_format") or DEFAULT_OUTPUT_FORMAT
    if not isinstance(output_format, str) or output_format.lower() not in VALID_OUTPUT_FORMATS:
        raise InvalidParameterError(
            f"Output format must be one of: {', '.join(VALID_OUTPUT_FORMATS)}"
        )

    return GenerationParameters(
        prompt=prompt.strip(),
        aspect_ratio=aspect_ratio,
        output_format=output_format.lower(),
        strength=strength,
    )


def validate_image_url(value: Any) -> str:
    """Check that ``value`` is an absolute http(s) URL and return it unchanged."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidParameterError("image_url is required and must be a string")

    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError, ValueError):
        raise InvalidParameterError("image_url must be a valid URL using HTTP or HTTPS") from None

    if url.scheme not in _ALLOWED_URL_SCHEMES or not url.host:
        raise InvalidParameterError("image_url must be a valid URL using HTTP or HTTPS")
    return value
