"""Assembly of the multipart body sent to the upstream image API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ..schemas import FetchedImage, GenerationParameters
from ..utils import extension_for

# (filename, content, content_type); a filename of None makes a plain form field
FilePart = Union[Tuple[None, str], Tuple[str, bytes, str]]


@dataclass(frozen=True)
class UpstreamPayload:
    """Ordered multipart parts in the shape ``httpx`` accepts for ``files=``."""

    parts: List[Tuple[str, FilePart]] = field(default_factory=list)

    def field_names(self) -> List[str]:
        return [name for name, _ in self.parts]

    def text_fields(self) -> dict[str, str]:
        return {name: part[1] for name, part in self.parts if part[0] is None}


def _format_number(value: float) -> str:
    # 1.0 is sent as "1"
    return str(int(value)) if value.is_integer() else repr(value)


def build_upstream_payload(
    params: GenerationParameters,
    image: Optional[FetchedImage] = None,
) -> UpstreamPayload:
    """
    Build the multipart payload for a generate or enhance call.

    Text fields are encoded as filename-less parts so the request is
    multipart even when no image is attached.

    Args:
        params (GenerationParameters): Already validated parameters.
        image (FetchedImage | None): Source image for enhancement.

    Returns:
        UpstreamPayload: One part per applicable field.
    """
    parts: List[Tuple[str, FilePart]] = [
        ("prompt", (None, params.prompt)),
        ("aspect_ratio", (None, params.aspect_ratio)),
        ("output_format", (None, params.output_format)),
    ]

    if params.strength is not None:
        parts.append(("strength", (None, _format_number(params.strength))))

    if image is not None:
        filename = f"input{extension_for(image.content_type)}"
        parts.append(("image", (filename, image.content, image.content_type)))

    return UpstreamPayload(parts=parts)
