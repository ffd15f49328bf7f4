"""
Core modules for the DataFrame/tensor/image converters
"""

from .config import Settings, configure_logging, get_settings
from .exceptions import (
    CanvasUnavailableError,
    ConversionError,
    DecodeTimeoutError,
    ImageDecodeError,
    ImageEncodeError,
    ShapeValidationError,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "ConversionError",
    "ShapeValidationError",
    "CanvasUnavailableError",
    "ImageDecodeError",
    "DecodeTimeoutError",
    "ImageEncodeError",
]
