"""Errors raised while compressing an image to a target size."""


class CompressionError(Exception):
    """Base class for all compression failures."""

    pass


class InvalidArgumentError(CompressionError):
    """Raised when the target size or another option is invalid."""

    pass


class DecodeError(CompressionError):
    """Raised when the source image cannot be decoded."""

    pass


class RenderError(CompressionError):
    """Raised when the requested render geometry is invalid."""

    pass


class EncodeError(CompressionError):
    """Raised when the output format is unsupported or encoding fails."""

    pass
