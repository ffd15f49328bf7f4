"""
Constants and configuration values for the DataFrame/tensor/image converters.
Centralizes all magic numbers and message templates.
"""

from enum import Enum


# Image Constants
class ImageConstants:
    """Constants related to raster images and image tensors."""

    # MIME types
    MIME_PNG = "image/png"
    MIME_JPEG = "image/jpeg"
    DEFAULT_MIME_TYPE = MIME_PNG
    SUPPORTED_MIME_TYPES = [MIME_PNG, MIME_JPEG]

    # Codec format names (Pillow) and extensions (OpenCV) per MIME type
    PIL_FORMATS = {MIME_PNG: "PNG", MIME_JPEG: "JPEG"}
    CV2_EXTENSIONS = {MIME_PNG: ".png", MIME_JPEG: ".jpg"}

    # File signatures used to tag raw bytes
    PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
    JPEG_SIGNATURE = b"\xff\xd8\xff"

    # Channels
    RGB_CHANNELS = 3
    RGBA_CHANNELS = 4
    TENSOR_RANK = 3

    # Intensities
    MAX_INTENSITY = 255
    OPAQUE_ALPHA = 255

    # Canvas limits
    MIN_CANVAS_DIMENSION = 1
    MAX_CANVAS_DIMENSION = 16384

    # JPEG quality (normalized 0-1 scale mapped to codec 1-100 scale)
    MIN_QUALITY = 0.0
    MAX_QUALITY = 1.0
    CODEC_MIN_QUALITY = 1
    CODEC_MAX_QUALITY = 100

    # Timeouts
    DEFAULT_DECODE_TIMEOUT_SECONDS = 30.0
    DEFAULT_ENCODE_TIMEOUT_SECONDS = 30.0

    DEFAULT_DTYPE = "float32"


# Tabular Constants
class TabularConstants:
    """Constants related to DataFrame conversion."""

    TENSOR_RANK = 2
    RECORDS_ORIENT = "records"
    DEFAULT_DTYPE = "float64"


class CodecBackend(str, Enum):
    """Raster codec implementations."""

    PILLOW = "pillow"
    OPENCV = "opencv"


# System Constants
class SystemConstants:
    """Constants for system operations."""

    # Logging
    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Settings
    ENV_PREFIX = "DFCONV_"
    ENV_NESTED_DELIMITER = "__"


# Error Messages
class ErrorMessages:
    """Standard error messages."""

    # Shape errors
    TABULAR_RANK = "Only 2D tensors can be converted to a DataFrame"
    IMAGE_SHAPE = "Tensor must have shape [height, width, 3] for RGB image"
    DUPLICATE_COLUMNS = "DataFrame column names must be unique, duplicates: {columns}"
    PIXEL_BUFFER_SIZE = (
        "Pixel data length {length} does not match {width}x{height} RGBA buffer ({expected})"
    )
    INVALID_CHANNELS = "Channel count must be 3 or 4, got {channels}"

    # Canvas errors
    CANVAS_CONTEXT = "Unable to get canvas context"
    CANVAS_DIMENSIONS = "Canvas dimensions {width}x{height} out of range [{min}, {max}]"
    CANVAS_CLOSED = "Canvas has already been released"

    # Codec errors
    IMAGE_LOAD_FAILED = "Image loading failed: {error}"
    IMAGE_LOAD_TIMEOUT = "Image loading timed out after {timeout} seconds"
    IMAGE_SOURCE_RELEASED = "Image source has already been released"
    BLOB_CONVERSION_FAILED = "Conversion to Blob failed"
    BLOB_CONVERSION_TIMEOUT = "Conversion to Blob timed out after {timeout} seconds"
    UNSUPPORTED_FORMAT = "Unsupported image format: {format}"
    UNKNOWN_BACKEND = "Unknown codec backend: {backend}"
