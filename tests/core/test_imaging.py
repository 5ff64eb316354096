"""Tests for Pillow decode, render and encode."""

from io import BytesIO

import pytest
from PIL import Image

from src.core.errors import DecodeError, EncodeError, RenderError
from src.core.imaging import (
    PillowEncoder,
    PillowImageSource,
    PillowRenderer,
    supported_formats,
    to_pillow_quality,
)


class TestPillowImageSource:
    """Test image decoding."""

    def test_decode_png(self, sample_png_bytes: bytes) -> None:
        """Test decoding a valid PNG."""
        image = PillowImageSource().decode(sample_png_bytes)

        assert image.size == (640, 480)

    def test_decode_empty(self) -> None:
        """Test empty input is rejected."""
        with pytest.raises(DecodeError):
            PillowImageSource().decode(b"")

    def test_decode_garbage(self) -> None:
        """Test unreadable input is rejected."""
        with pytest.raises(DecodeError):
            PillowImageSource().decode(b"definitely not an image")

    def test_decode_truncated(self, sample_png_bytes: bytes) -> None:
        """Test truncated input is rejected."""
        with pytest.raises(DecodeError):
            PillowImageSource().decode(sample_png_bytes[: len(sample_png_bytes) // 2])

    def test_decode_palette_image(self) -> None:
        """Test palette images are converted for resampling."""
        buffer = BytesIO()
        Image.new("P", (20, 10)).save(buffer, format="GIF")

        image = PillowImageSource().decode(buffer.getvalue())

        assert image.mode in ("RGB", "RGBA")
        assert image.size == (20, 10)

    def test_decode_uses_first_frame(self) -> None:
        """Test animated input is reduced to its first frame."""
        frames = [Image.new("RGB", (16, 16), color) for color in ("red", "blue")]
        buffer = BytesIO()
        frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:])

        image = PillowImageSource().decode(buffer.getvalue())

        assert image.convert("RGB").getpixel((0, 0)) == (255, 0, 0)


class TestPillowRenderer:
    """Test image resampling."""

    def test_render_exact_size(self, sample_image: Image.Image) -> None:
        """Test output has exactly the requested size."""
        rendered = PillowRenderer().render(sample_image, 321, 123)

        assert rendered.size == (321, 123)

    def test_render_same_size_copies(self, sample_image: Image.Image) -> None:
        """Test rendering at source size returns a new image."""
        rendered = PillowRenderer().render(sample_image, 640, 480)

        assert rendered.size == (640, 480)
        assert rendered is not sample_image

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-5, 5)])
    def test_render_invalid_size(
        self, sample_image: Image.Image, width: int, height: int
    ) -> None:
        """Test non-positive sizes are rejected."""
        with pytest.raises(RenderError):
            PillowRenderer().render(sample_image, width, height)


class TestPillowEncoder:
    """Test image encoding."""

    def test_quality_mapping(self) -> None:
        """Test quality scalar maps onto Pillow's scale."""
        assert to_pillow_quality(0.0) == 1
        assert to_pillow_quality(0.5) == 50
        assert to_pillow_quality(0.95) == 95
        assert to_pillow_quality(1.0) == 100

    def test_encode_jpeg(self, sample_image: Image.Image) -> None:
        """Test JPEG output decodes back."""
        blob = PillowEncoder().encode(sample_image, "image/jpeg", 0.8)

        assert Image.open(BytesIO(blob)).format == "JPEG"

    def test_size_grows_with_quality(self, sample_image: Image.Image) -> None:
        """Test higher quality produces a larger JPEG."""
        encoder = PillowEncoder()

        low = encoder.encode(sample_image, "jpeg", 0.2)
        high = encoder.encode(sample_image, "jpeg", 0.9)

        assert len(low) < len(high)

    def test_jpeg_flattens_transparency(
        self, sample_image_with_transparency: Image.Image
    ) -> None:
        """Test RGBA input is flattened for JPEG."""
        blob = PillowEncoder().encode(sample_image_with_transparency, "jpeg", 0.8)

        decoded = Image.open(BytesIO(blob))
        assert decoded.mode == "RGB"
        assert decoded.size == (200, 150)

    def test_encode_png(self, sample_image_with_transparency: Image.Image) -> None:
        """Test PNG output keeps alpha."""
        blob = PillowEncoder().encode(sample_image_with_transparency, "image/png", 0.5)

        decoded = Image.open(BytesIO(blob))
        assert decoded.format == "PNG"
        assert decoded.mode == "RGBA"

    def test_unsupported_format(self, sample_image: Image.Image) -> None:
        """Test unknown formats are rejected."""
        with pytest.raises(EncodeError):
            PillowEncoder().encode(sample_image, "image/bmp", 0.5)

    def test_quality_out_of_range(self, sample_image: Image.Image) -> None:
        """Test quality outside [0, 1] is rejected."""
        with pytest.raises(EncodeError):
            PillowEncoder().encode(sample_image, "jpeg", 1.5)

    def test_supported_formats(self) -> None:
        """Test JPEG and PNG are always available."""
        formats = supported_formats()

        assert "jpeg" in formats
        assert "png" in formats
