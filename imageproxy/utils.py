from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

DEFAULT_MIME_TYPE = "image/webp"
DEFAULT_EXTENSION = ".bin"

_MIME_TYPES = {
    "webp": "image/webp",
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
}

_EXTENSIONS = {
    "image/webp": ".webp",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "application/octet-stream": ".bin",
}


def mime_type_for(output_format: Optional[str]) -> str:
    """
    Map an output format identifier to its MIME type.

    Args:
        output_format (str | None): Format such as ``"png"`` or ``"JPEG"``.

    Returns:
        str: The MIME type, ``image/webp`` for unknown or missing formats.
    """
    if not isinstance(output_format, str):
        return DEFAULT_MIME_TYPE
    return _MIME_TYPES.get(output_format.strip().lower(), DEFAULT_MIME_TYPE)


def extension_for(content_type: Optional[str]) -> str:
    """
    Map a Content-Type header value to a file extension.

    Parameters after ``;`` (charset, boundary, ...) are ignored.

    Args:
        content_type (str | None): Header value, e.g. ``"image/png; charset=binary"``.

    Returns:
        str: The extension including the dot, ``.bin`` when unknown.
    """
    if not isinstance(content_type, str):
        return DEFAULT_EXTENSION
    main_type = content_type.split(";", 1)[0].strip().lower()
    return _EXTENSIONS.get(main_type, DEFAULT_EXTENSION)


def build_data_uri(mime_type: str, encoded: str) -> str:
    return f"data:{mime_type};base64,{encoded}"


def utc_timestamp() -> str:
    # ISO-8601 with millisecond precision, e.g. 2024-05-01T12:00:00.000Z
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
