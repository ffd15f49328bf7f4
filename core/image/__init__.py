"""
Raster utilities - modular architecture.

This package provides the raster layer the image converters run on:
- converters: Codec conversions (NumPy RGBA, PIL, OpenCV, PNG/JPEG bytes)
- raster: Off-screen canvas, pixel buffers and asynchronous encode/decode
"""

from core.image.converters import decode_rgba, encode_rgba
from core.image.raster import (
    Canvas,
    DecodedImage,
    ImageSource,
    PixelBuffer,
    decode_image,
    encode_canvas,
    ensure_canvas_dimensions,
)

__all__ = [
    "Canvas",
    "DecodedImage",
    "ImageSource",
    "PixelBuffer",
    "decode_image",
    "encode_canvas",
    "ensure_canvas_dimensions",
    "decode_rgba",
    "encode_rgba",
]
