"""Size-targeted image compression with quality search and downscale retries."""

import dataclasses
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Tuple, Union, cast

from src.core.errors import InvalidArgumentError
from src.core.imaging import (
    Encoder,
    ImageSource,
    PillowEncoder,
    PillowImageSource,
    PillowRenderer,
    Renderer,
)
from src.core.options import CompressionOptions
from src.core.search import QualitySearch
from src.utils.executor import run_blocking

logger = logging.getLogger(__name__)

ImageInput = Union[bytes, bytearray, memoryview, BinaryIO]


@dataclass
class CompressionResult:
    """Final blob and metadata about how it was produced."""

    data: bytes
    format: str
    mime_type: str
    width: int
    height: int
    quality: float
    downscale_ratio: float
    attempts: int
    encode_calls: int
    target_size_bytes: int
    target_met: bool
    processing_ms: int

    @property
    def size_bytes(self) -> int:
        """Size of the encoded blob in bytes."""
        return len(self.data)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_render_size(
    width: int,
    height: int,
    downscale_ratio: float = 1.0,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Compute the render geometry for one attempt.

    The downscale ratio is applied first, then the result is clamped to
    max_width and max_height in turn, each clamp preserving aspect ratio.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        downscale_ratio: Scale factor, 1.0 for the source size
        max_width: Optional width cap
        max_height: Optional height cap

    Returns:
        Tuple of (width, height), each at least 1 pixel
    """
    if downscale_ratio < 1:
        width = _round_half_up(width * downscale_ratio)
        height = _round_half_up(height * downscale_ratio)

    if max_width and width > max_width:
        height = _round_half_up(height * (max_width / width))
        width = max_width
    if max_height and height > max_height:
        width = _round_half_up(width * (max_height / height))
        height = max_height

    return max(1, width), max(1, height)


def max_downscale_retries(scale_step: float, scale_floor: float) -> int:
    """Upper bound on downscale retries before the ratio reaches scale_floor."""
    if scale_floor >= 1.0:
        return 0
    return math.ceil(math.log(scale_floor) / math.log(scale_step))


class SizeTargetCompressor:
    """Compress images to approximately a target byte size."""

    def __init__(
        self,
        image_source: Optional[ImageSource] = None,
        renderer: Optional[Renderer] = None,
        encoder: Optional[Encoder] = None,
    ) -> None:
        """Initialize with collaborators, defaulting to the Pillow implementations."""
        self.image_source = image_source or PillowImageSource()
        self.renderer = renderer or PillowRenderer()
        self.encoder = encoder or PillowEncoder()

    async def compress(self, data: bytes, options: CompressionOptions) -> CompressionResult:
        """
        Compress image bytes according to options.

        Each attempt renders the source at the current downscale ratio and
        runs a fresh quality search over [min_quality, max_quality]. While the
        result is larger than target + tolerance, scaling down is allowed and
        the ratio is above scale_floor, the ratio is multiplied by scale_step
        (clamped to scale_floor) and the attempt repeats. Otherwise the
        current blob is returned, even if it is still over target.

        Args:
            data: Encoded source image
            options: Validated compression options

        Returns:
            CompressionResult with the final blob

        Raises:
            DecodeError: If the source cannot be decoded
            RenderError: If a render geometry is invalid
            EncodeError: If the output format is unsupported
        """
        start_time = time.time()
        target = cast(int, options.target_size_bytes)

        source = await run_blocking(self.image_source.decode, data)
        logger.info(
            f"Compressing {source.width}x{source.height} image to "
            f"{target / 1024:.1f}KB as {options.mime_type}"
        )

        search = QualitySearch(self.encoder, options.format)
        downscale_ratio = 1.0
        encode_calls = 0
        max_attempts = 1 + (
            max_downscale_retries(options.scale_step, options.scale_floor)
            if options.allow_scale_down
            else 0
        )

        for attempt in range(1, max_attempts + 1):
            width, height = compute_render_size(
                source.width,
                source.height,
                downscale_ratio,
                options.max_width,
                options.max_height,
            )
            surface = await run_blocking(self.renderer.render, source, width, height)

            result = await search.search(
                surface,
                target,
                options.min_quality,
                options.max_quality,
                options.max_iterations,
                options.tolerance_bytes,
            )
            encode_calls += result.iterations
            del surface

            logger.info(
                f"Attempt {attempt}: {width}x{height} (ratio {downscale_ratio:.3f}), "
                f"quality {result.quality:.3f}, {result.size_bytes / 1024:.1f}KB "
                f"after {result.iterations} encodes"
            )

            if (
                result.size_bytes > options.size_limit_bytes
                and options.allow_scale_down
                and downscale_ratio > options.scale_floor
                and attempt < max_attempts
            ):
                downscale_ratio = max(downscale_ratio * options.scale_step, options.scale_floor)
                continue
            break

        target_met = result.size_bytes <= options.size_limit_bytes
        if not target_met:
            logger.warning(
                f"Could not reach {target / 1024:.1f}KB; returning "
                f"{result.size_bytes / 1024:.1f}KB at {width}x{height}"
            )

        return CompressionResult(
            data=result.blob,
            format=options.format_name,
            mime_type=options.mime_type,
            width=width,
            height=height,
            quality=result.quality,
            downscale_ratio=downscale_ratio,
            attempts=attempt,
            encode_calls=encode_calls,
            target_size_bytes=target,
            target_met=target_met,
            processing_ms=int((time.time() - start_time) * 1000),
        )


def _read_image_input(image: ImageInput) -> bytes:
    if isinstance(image, (bytes, bytearray, memoryview)):
        return bytes(image)
    if hasattr(image, "read"):
        return image.read()
    raise InvalidArgumentError(
        f"image must be bytes or a binary file object, got {type(image).__name__}"
    )


async def compress_to_target(
    image: ImageInput,
    options: Optional[CompressionOptions] = None,
    compressor: Optional[SizeTargetCompressor] = None,
    **overrides: Any,
) -> CompressionResult:
    """
    Compress an image to approximately a target size.

    Args:
        image: Encoded image as bytes or a binary file object
        options: Compression options; built from overrides when omitted
        compressor: Compressor to use, defaulting to a Pillow-backed one
        **overrides: CompressionOptions fields, e.g. target_size_bytes=300 * 1024

    Returns:
        CompressionResult with the final blob

    Raises:
        InvalidArgumentError: If options are missing or invalid
    """
    try:
        if options is None:
            options = CompressionOptions(**overrides)
        elif overrides:
            options = dataclasses.replace(options, **overrides)
    except TypeError as e:
        raise InvalidArgumentError(f"Invalid compression option: {e}") from e

    data = _read_image_input(image)
    return await (compressor or SizeTargetCompressor()).compress(data, options)
