"""
Exception types raised by the converters.

All conversion failures derive from ConversionError so callers can catch
the whole family at once.
"""


class ConversionError(Exception):
    """Base class for conversion failures."""


class ShapeValidationError(ConversionError, ValueError):
    """Input has the wrong rank, channel count or column layout."""


class CanvasUnavailableError(ConversionError):
    """An off-screen drawing surface could not be acquired or was released."""


class ImageDecodeError(ConversionError):
    """Encoded image bytes could not be decoded."""


class DecodeTimeoutError(ImageDecodeError):
    """Decoding did not complete within the allowed time."""


class ImageEncodeError(ConversionError):
    """A canvas could not be encoded to image bytes."""
