"""Exception types raised by cellimg."""


class CellImageError(Exception):
    """Base class for all cellimg errors."""


class ValidationError(CellImageError, ValueError):
    """A value failed validation at construction or deserialization."""


class CodecError(CellImageError):
    """A raster codec could not detect or decode its input."""


class EmptyAnimationError(CellImageError, ValueError):
    """An animated payload has no frames."""
