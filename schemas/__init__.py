"""
Schemas Package

Pydantic models shared by the converters for validation of encoded images
and codec parameters.
"""

from .image import DecodeOptions, EncodeOptions, ImageBlob, MimeType, sniff_mime_type

__all__ = [
    "ImageBlob",
    "EncodeOptions",
    "DecodeOptions",
    "MimeType",
    "sniff_mime_type",
]
