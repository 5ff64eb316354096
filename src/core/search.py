"""Binary search over encoder quality for a fixed surface."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from src.core.imaging import Encoder
from src.utils.executor import run_blocking

logger = logging.getLogger(__name__)


@dataclass
class SearchState:
    """Mutable state of one quality search."""

    low: float
    high: float
    current_quality: float
    iteration: int = 0
    best_blob: Optional[bytes] = None
    best_quality: Optional[float] = None
    last_blob: bytes = b""
    last_quality: float = 0.0
    qualities: list[float] = field(default_factory=list)


@dataclass
class SearchResult:
    """Outcome of a quality search."""

    blob: bytes
    quality: float
    iterations: int
    qualities: list[float]
    conforming: bool

    @property
    def size_bytes(self) -> int:
        """Size of the chosen blob."""
        return len(self.blob)


class QualitySearch:
    """Find an encoder quality whose output size is close to a target."""

    def __init__(self, encoder: Encoder, format: str) -> None:
        """Initialize the search with the encoder and output format to use."""
        self.encoder = encoder
        self.format = format

    async def search(
        self,
        surface: Any,
        target_size_bytes: int,
        min_quality: float,
        max_quality: float,
        max_iterations: int,
        tolerance_bytes: int,
    ) -> SearchResult:
        """
        Bisect quality between min_quality and max_quality.

        The search starts at max_quality. A blob no larger than the target
        raises the lower bound and becomes the best blob (the most recent
        conforming blob wins, not the closest one); a larger blob lowers the
        upper bound. It stops after max_iterations encodes or as soon as an
        encode lands within tolerance_bytes of the target.

        Args:
            surface: Surface to encode
            target_size_bytes: Desired blob size
            min_quality: Lower quality bound
            max_quality: Upper quality bound, tried first
            max_iterations: Maximum number of encodes
            tolerance_bytes: Absolute size window that ends the search early

        Returns:
            The best conforming blob, or the last blob encoded if none conformed
        """
        state = SearchState(low=min_quality, high=max_quality, current_quality=max_quality)

        while True:
            quality = state.current_quality
            blob = await run_blocking(self.encoder.encode, surface, self.format, quality)
            size = len(blob)

            state.qualities.append(quality)
            state.last_blob = blob
            state.last_quality = quality

            if size <= target_size_bytes:
                state.best_blob = blob
                state.best_quality = quality
                state.low = quality
            else:
                state.high = quality

            state.iteration += 1
            logger.debug(
                f"Quality search iteration {state.iteration}: quality={quality:.4f}, "
                f"size={size} bytes, target={target_size_bytes} bytes"
            )

            if (
                state.iteration >= max_iterations
                or abs(size - target_size_bytes) <= tolerance_bytes
            ):
                break

            state.current_quality = (state.low + state.high) / 2

        if state.best_blob is not None and state.best_quality is not None:
            return SearchResult(
                blob=state.best_blob,
                quality=state.best_quality,
                iterations=state.iteration,
                qualities=state.qualities,
                conforming=True,
            )

        return SearchResult(
            blob=state.last_blob,
            quality=state.last_quality,
            iterations=state.iteration,
            qualities=state.qualities,
            conforming=False,
        )
