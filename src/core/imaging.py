"""Decode, render and encode capabilities used by the compressor."""

import logging
from io import BytesIO
from typing import Any, Dict, Protocol

from PIL import Image, UnidentifiedImageError

from src.api.config import FORMAT_MIME_TYPES
from src.core.errors import DecodeError, EncodeError, RenderError
from src.core.options import resolve_format

logger = logging.getLogger(__name__)


class ImageSource(Protocol):
    """Decodes raw bytes into a pixel surface."""

    def decode(self, data: bytes) -> Any:
        """
        Decode image bytes.

        Raises:
            DecodeError: If the input is empty, unsupported or corrupt
        """
        ...


class Renderer(Protocol):
    """Resamples a surface to an exact size."""

    def render(self, surface: Any, width: int, height: int) -> Any:
        """
        Render surface at width x height.

        Raises:
            RenderError: If either dimension is not positive
        """
        ...


class Encoder(Protocol):
    """Encodes a surface into a byte blob at a given quality."""

    def encode(self, surface: Any, format: str, quality: float) -> bytes:
        """
        Encode surface.

        Args:
            surface: Surface to encode
            format: MIME type or short format name
            quality: Quality in [0, 1]; output size is expected to grow with it

        Raises:
            EncodeError: If the format is unsupported or encoding fails
        """
        ...


class PillowImageSource:
    """Decode images with Pillow."""

    def decode(self, data: bytes) -> Image.Image:
        """Decode the first frame of an image and load its pixels."""
        if not data:
            raise DecodeError("Image data is empty")

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Unsupported image data: {e}") from e
        except (OSError, ValueError, SyntaxError) as e:
            raise DecodeError(f"Corrupt image data: {e}") from e

        if getattr(image, "n_frames", 1) > 1:
            # Only the first frame is used
            image = image.copy()

        if image.mode in ("1", "P"):
            image = image.convert("RGBA" if "transparency" in image.info else "RGB")

        logger.debug(f"Decoded {image.format or 'image'}: {image.width}x{image.height} {image.mode}")
        return image


class PillowRenderer:
    """Resample images with Pillow."""

    def render(self, surface: Image.Image, width: int, height: int) -> Image.Image:
        """Resize to exactly width x height using LANCZOS resampling."""
        if width <= 0 or height <= 0:
            raise RenderError(f"Render size must be positive, got {width}x{height}")

        if surface.size == (width, height):
            return surface.copy()

        return surface.resize((width, height), Image.Resampling.LANCZOS)


def to_pillow_quality(quality: float) -> int:
    """Map a quality in [0, 1] to Pillow's 1-100 scale."""
    return max(1, min(100, int(round(quality * 100))))


def supported_formats() -> list[str]:
    """List the short names of output formats the installed Pillow can write."""
    Image.init()
    return [name for name in FORMAT_MIME_TYPES if name.upper() in Image.SAVE]


class PillowEncoder:
    """Encode images with Pillow's lossy (and lossless PNG) writers."""

    def encode(self, surface: Image.Image, format: str, quality: float) -> bytes:
        """Encode surface in the requested format at the given quality."""
        name = resolve_format(format)
        if name is None:
            raise EncodeError(f"Unsupported output format: {format}")
        if not 0.0 <= quality <= 1.0:
            raise EncodeError(f"Quality must be within [0, 1], got {quality}")

        output_format = name.upper()
        image = self._prepare(surface, output_format)
        buffer = BytesIO()

        try:
            image.save(buffer, format=output_format, **self._save_kwargs(output_format, quality))
        except KeyError as e:
            raise EncodeError(f"Output format not available in this build: {format}") from e
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode {output_format}: {e}") from e

        return buffer.getvalue()

    def _prepare(self, image: Image.Image, output_format: str) -> Image.Image:
        """Convert image to a mode the output format can store."""
        if output_format == "JPEG":
            if image.mode in ("RGBA", "LA"):
                background = Image.new("RGB", image.size, (255, 255, 255))
                background.paste(image, mask=image.split()[-1])
                return background
            if image.mode not in ("RGB", "L", "CMYK"):
                return image.convert("RGB")
        elif output_format in ("WEBP", "AVIF"):
            if image.mode not in ("RGB", "RGBA"):
                return image.convert("RGBA" if image.mode in ("LA", "PA") else "RGB")
        elif output_format == "PNG" and image.mode == "CMYK":
            return image.convert("RGB")
        return image

    def _save_kwargs(self, output_format: str, quality: float) -> Dict[str, Any]:
        """Format-specific save options."""
        pillow_quality = to_pillow_quality(quality)

        if output_format == "JPEG":
            return {"quality": pillow_quality, "optimize": True, "progressive": True}
        if output_format == "WEBP":
            return {"quality": pillow_quality, "method": 4, "lossless": False}
        if output_format == "AVIF":
            return {"quality": pillow_quality, "speed": 6}
        if output_format == "PNG":
            # Lossless; quality has no effect on size
            return {"optimize": False, "compress_level": 9}
        return {"quality": pillow_quality}
