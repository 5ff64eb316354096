"""Tests for API models."""

import pytest
from pydantic import ValidationError

from src.api.config import Settings
from src.api.models import CompressRequest
from src.core.errors import InvalidArgumentError


class TestCompressRequest:
    """Test compress request model."""

    def test_target_must_be_positive(self) -> None:
        """Test target size must be > 0."""
        with pytest.raises(ValidationError):
            CompressRequest(target_kb=0)

    def test_format_must_be_known(self) -> None:
        """Test unknown formats are rejected."""
        with pytest.raises(ValidationError):
            CompressRequest(target_kb=100, format="bmp")

    def test_to_options(self) -> None:
        """Test conversion to compression options."""
        request = CompressRequest(target_kb=300, format="webp", max_width=1920)
        config = Settings(default_tolerance_kb=2, scale_step=0.8, scale_floor=0.5)

        options = request.to_options(config)

        assert options.target_size_bytes == 300 * 1024
        assert options.format == "webp"
        assert options.max_width == 1920
        assert options.tolerance_bytes == 2 * 1024
        assert options.scale_step == 0.8
        assert options.scale_floor == 0.5

    def test_to_options_rejects_inverted_bounds(self) -> None:
        """Test cross-field validation happens when building options."""
        request = CompressRequest(target_kb=300, min_quality=0.9, max_quality=0.2)

        with pytest.raises(InvalidArgumentError):
            request.to_options(Settings())
