"""Pytest configuration and fixtures."""

from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Optional, Sequence

import pytest
from PIL import Image

from src.core.compressor import SizeTargetCompressor
from src.core.errors import RenderError


@dataclass
class FakeSurface:
    """Surface stand-in that only knows its size."""

    width: int
    height: int


class FakeImageSource:
    """Decoder that returns a fixed-size surface."""

    def __init__(self, width: int = 1000, height: int = 800) -> None:
        self.width = width
        self.height = height
        self.calls: list[bytes] = []

    def decode(self, data: bytes) -> FakeSurface:
        self.calls.append(data)
        return FakeSurface(self.width, self.height)


class RecordingRenderer:
    """Renderer that records every requested geometry."""

    def __init__(self) -> None:
        self.sizes: list[tuple[int, int]] = []

    def render(self, surface: FakeSurface, width: int, height: int) -> FakeSurface:
        if width <= 0 or height <= 0:
            raise RenderError(f"bad size {width}x{height}")
        self.sizes.append((width, height))
        return FakeSurface(width, height)


class LinearEncoder:
    """
    Encoder whose output size is linear in quality and in pixel area.

    size = floor_bytes + full_size_bytes * quality * (area / reference_area)
    """

    def __init__(
        self,
        full_size_bytes: int,
        reference_area: int = 1000 * 800,
        floor_bytes: int = 0,
    ) -> None:
        self.full_size_bytes = full_size_bytes
        self.reference_area = reference_area
        self.floor_bytes = floor_bytes
        self.qualities: list[float] = []

    def encode(self, surface: FakeSurface, format: str, quality: float) -> bytes:
        self.qualities.append(quality)
        area = surface.width * surface.height
        size = self.floor_bytes + self.full_size_bytes * quality * area / self.reference_area
        return b"\x00" * int(size)


class SequenceEncoder:
    """Encoder that returns blobs of predetermined sizes in order."""

    def __init__(self, sizes: Sequence[int]) -> None:
        self.sizes = list(sizes)
        self.qualities: list[float] = []

    def encode(self, surface: FakeSurface, format: str, quality: float) -> bytes:
        self.qualities.append(quality)
        return b"\x00" * self.sizes[len(self.qualities) - 1]


@pytest.fixture
def fake_source() -> FakeImageSource:
    """Create a decoder producing a 1000x800 surface."""
    return FakeImageSource()


@pytest.fixture
def renderer() -> RecordingRenderer:
    """Create a recording renderer."""
    return RecordingRenderer()


@pytest.fixture
def linear_encoder() -> Callable[..., LinearEncoder]:
    """Factory for linear synthetic encoders."""
    return LinearEncoder


@pytest.fixture
def sequence_encoder() -> Callable[..., SequenceEncoder]:
    """Factory for encoders with scripted sizes."""
    return SequenceEncoder


@pytest.fixture
def fake_compressor(
    fake_source: FakeImageSource, renderer: RecordingRenderer
) -> Callable[[object], SizeTargetCompressor]:
    """Factory for compressors wired to synthetic collaborators."""

    def build(encoder: object, source: Optional[FakeImageSource] = None) -> SizeTargetCompressor:
        return SizeTargetCompressor(
            image_source=source or fake_source,
            renderer=renderer,
            encoder=encoder,  # type: ignore[arg-type]
        )

    return build


@pytest.fixture
def sample_image() -> Image.Image:
    """Create a noisy test image whose JPEG size depends strongly on quality."""
    noise = Image.effect_noise((640, 480), 64)
    return Image.merge(
        "RGB",
        (
            noise,
            noise.transpose(Image.Transpose.FLIP_LEFT_RIGHT),
            noise.transpose(Image.Transpose.FLIP_TOP_BOTTOM),
        ),
    )


@pytest.fixture
def sample_png_bytes(sample_image: Image.Image) -> bytes:
    """Encode the sample image as PNG."""
    buffer = BytesIO()
    sample_image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_image_with_transparency() -> Image.Image:
    """Create a sample image with transparency."""
    return Image.new("RGBA", (200, 150), color=(255, 0, 0, 128))
