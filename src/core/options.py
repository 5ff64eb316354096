"""Validated configuration for a single size-targeted compression."""

from dataclasses import dataclass
from numbers import Real
from typing import Optional, cast

from src.api.config import (
    DEFAULT_FORMAT,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_QUALITY,
    DEFAULT_MIN_QUALITY,
    DEFAULT_SCALE_FLOOR,
    DEFAULT_SCALE_STEP,
    DEFAULT_TOLERANCE_BYTES,
    FORMAT_ALIASES,
    FORMAT_MIME_TYPES,
)
from src.core.errors import InvalidArgumentError


def resolve_format(selector: str) -> Optional[str]:
    """
    Resolve a MIME type or short format name to a short format name.

    Args:
        selector: Format selector such as 'image/webp', 'webp' or 'JPG'

    Returns:
        Short format name ('jpeg', 'webp', 'png', 'avif'), or None if unknown
    """
    key = selector.strip().lower()
    key = FORMAT_ALIASES.get(key, key)
    if key in FORMAT_MIME_TYPES:
        return key
    for name, mime_type in FORMAT_MIME_TYPES.items():
        if key == mime_type:
            return name
    return None


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class CompressionOptions:
    """
    Options for compressing one image to a target byte size.

    Constructed once per call and validated immediately, so a bad request
    fails before any decode, render or encode work starts.
    """

    target_size_bytes: Optional[int] = None
    format: str = DEFAULT_FORMAT
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    min_quality: float = DEFAULT_MIN_QUALITY
    max_quality: float = DEFAULT_MAX_QUALITY
    allow_scale_down: bool = True
    tolerance_bytes: int = DEFAULT_TOLERANCE_BYTES
    scale_step: float = DEFAULT_SCALE_STEP
    scale_floor: float = DEFAULT_SCALE_FLOOR

    def __post_init__(self) -> None:
        """Validate all fields, raising InvalidArgumentError on the first problem."""
        if self.target_size_bytes is None:
            raise InvalidArgumentError("target_size_bytes is required")
        if not _is_int(self.target_size_bytes) or self.target_size_bytes <= 0:
            raise InvalidArgumentError(
                f"target_size_bytes must be a positive integer, got {self.target_size_bytes!r}"
            )

        if not isinstance(self.format, str) or not self.format.strip():
            raise InvalidArgumentError("format must be a non-empty string")

        for name in ("max_width", "max_height"):
            value = getattr(self, name)
            if value is not None and (not _is_int(value) or value <= 0):
                raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")

        if not _is_int(self.max_iterations) or self.max_iterations <= 0:
            raise InvalidArgumentError(
                f"max_iterations must be a positive integer, got {self.max_iterations!r}"
            )

        for name in ("min_quality", "max_quality"):
            value = getattr(self, name)
            if not _is_number(value) or not 0.0 <= value <= 1.0:
                raise InvalidArgumentError(f"{name} must be within [0, 1], got {value!r}")
        if self.min_quality >= self.max_quality:
            raise InvalidArgumentError(
                f"min_quality ({self.min_quality}) must be less than "
                f"max_quality ({self.max_quality})"
            )

        if not _is_int(self.tolerance_bytes) or self.tolerance_bytes < 0:
            raise InvalidArgumentError(
                f"tolerance_bytes must be a non-negative integer, got {self.tolerance_bytes!r}"
            )

        if not _is_number(self.scale_step) or not 0.0 < self.scale_step < 1.0:
            raise InvalidArgumentError(f"scale_step must be within (0, 1), got {self.scale_step!r}")
        if not _is_number(self.scale_floor) or not 0.0 < self.scale_floor <= 1.0:
            raise InvalidArgumentError(
                f"scale_floor must be within (0, 1], got {self.scale_floor!r}"
            )

    @property
    def format_name(self) -> str:
        """Short format name, or the lowercased selector if it is not a known format."""
        return resolve_format(self.format) or self.format.strip().lower()

    @property
    def mime_type(self) -> str:
        """MIME type for the selected format."""
        name = resolve_format(self.format)
        if name is None:
            return self.format.strip().lower()
        return FORMAT_MIME_TYPES[name]

    @property
    def size_limit_bytes(self) -> int:
        """Largest result size accepted without another downscale attempt."""
        return cast(int, self.target_size_bytes) + self.tolerance_bytes
