"""Pydantic models shared by the FastAPI endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationParameters(BaseModel):
    """Normalized parameters forwarded to the upstream API."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Trimmed, non-empty text prompt")
    aspect_ratio: str = Field("1:1", description="Output proportions as width:height")
    output_format: str = Field("webp", description="One of webp, png, jpeg (lowercase)")
    strength: Optional[float] = Field(None, description="Enhancement intensity in [0, 1]")


class FetchedImage(BaseModel):
    """A source image held in memory for the duration of one request."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size_bytes(self) -> int:
        return len(self.content)


# ---- Request bodies (documentation only, the endpoints parse raw bodies) ----
class GenerateImageRequest(BaseModel):
    prompt: str = Field(..., description="Text prompt for image generation")
    aspect_ratio: Optional[str] = Field(None, description="width:height, defaults to 1:1")
    output_format: Optional[str] = Field(None, description="webp, png or jpeg, defaults to webp")


class EnhanceImageRequest(GenerateImageRequest):
    image_url: str = Field(..., description="HTTP(S) URL of the source image")
    strength: Optional[float] = Field(None, description="Enhancement intensity in [0, 1]")
# ------------------------------------------------------------------------------


class GenerationMetadata(BaseModel):
    prompt: str
    aspect_ratio: str
    output_format: str
    generated_at: str


class EnhancementMetadata(BaseModel):
    prompt: str
    aspect_ratio: str
    output_format: str
    strength: Optional[float] = None
    input_image_url: Optional[str] = None
    input_image_type: str
    input_image_size_bytes: int
    enhanced_at: str


class GenerateImageResponse(BaseModel):
    image_url: str = Field(..., description="Data URI of the generated image")
    metadata: GenerationMetadata


class EnhanceImageResponse(BaseModel):
    image_url: str = Field(..., description="Data URI of the enhanced image")
    metadata: EnhancementMetadata


class ErrorResponse(BaseModel):
    error: str
    message: str
    timestamp: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str
