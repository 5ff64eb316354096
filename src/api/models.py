"""API request and response models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from src.api.config import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_QUALITY,
    DEFAULT_MIN_QUALITY,
    Settings,
)
from src.core.options import CompressionOptions


class CompressRequest(BaseModel):
    """Request parameters for size-targeted compression."""

    target_kb: float = Field(..., gt=0, description="Target output size in kilobytes")
    format: Literal["jpeg", "webp", "png", "avif"] = Field(
        default="jpeg", description="Output image format"
    )
    max_width: Optional[int] = Field(default=None, ge=1, description="Maximum width in pixels")
    max_height: Optional[int] = Field(default=None, ge=1, description="Maximum height in pixels")
    max_iterations: int = Field(
        default=DEFAULT_MAX_ITERATIONS, ge=1, le=50, description="Quality search iterations"
    )
    min_quality: float = Field(
        default=DEFAULT_MIN_QUALITY, ge=0.0, le=1.0, description="Lowest quality to try"
    )
    max_quality: float = Field(
        default=DEFAULT_MAX_QUALITY, ge=0.0, le=1.0, description="Highest quality to try"
    )
    allow_scale_down: bool = Field(
        default=True, description="Reduce resolution when quality alone is not enough"
    )
    output: Literal["binary", "base64", "json"] = Field(
        default="binary",
        description="Response format: binary image, base64 data URI, or JSON with metadata",
    )

    @property
    def target_size_bytes(self) -> int:
        """Target size converted to bytes."""
        return max(1, int(round(self.target_kb * 1024)))

    def to_options(self, settings: Settings) -> CompressionOptions:
        """
        Build validated compression options.

        Raises:
            InvalidArgumentError: If the combination of values is invalid
        """
        return CompressionOptions(
            target_size_bytes=self.target_size_bytes,
            format=self.format,
            max_width=self.max_width,
            max_height=self.max_height,
            max_iterations=self.max_iterations,
            min_quality=self.min_quality,
            max_quality=self.max_quality,
            allow_scale_down=self.allow_scale_down,
            tolerance_bytes=settings.default_tolerance_bytes,
            scale_step=settings.scale_step,
            scale_floor=settings.scale_floor,
        )


class CompressResponse(BaseModel):
    """Response containing the compressed image and metadata."""

    data: str = Field(..., description="Base64-encoded image data")
    format: str = Field(..., description="Image format (jpeg, webp, png, avif)")
    mime_type: str = Field(..., description="MIME type of the image")
    width: int = Field(..., description="Image width in pixels")
    height: int = Field(..., description="Image height in pixels")
    size_bytes: int = Field(..., description="Size of the encoded image in bytes")
    target_size_bytes: int = Field(..., description="Requested target size in bytes")
    target_met: bool = Field(
        ..., description="Whether the result is no larger than target plus tolerance"
    )
    quality: float = Field(..., description="Encoder quality used, between 0 and 1")
    downscale_ratio: float = Field(..., description="Resolution scale applied to the source")
    attempts: int = Field(..., description="Number of render and search attempts")
    encode_calls: int = Field(..., description="Total number of encodes performed")
    compression_ratio: float = Field(
        ..., description="Compression ratio (output size / input size)"
    )
    original_size_bytes: int = Field(..., description="Size of the uploaded image")
    processing_ms: int = Field(..., description="Processing time in milliseconds")
