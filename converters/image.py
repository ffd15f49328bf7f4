"""
Tensor <-> encoded image conversion.

Image tensors have shape (height, width, channels) with intensities in
[0, 1]. Encoding goes tensor -> RGBA pixel buffer -> canvas -> PNG/JPEG
bytes; decoding goes bytes -> decoded image -> canvas -> RGBA pixel buffer
-> tensor.
"""

import logging
from typing import Awaitable, Optional, Union

import numpy as np

from core.config import get_settings
from core.constants import CodecBackend, ErrorMessages, ImageConstants
from core.exceptions import ShapeValidationError
from core.image.raster import (
    Canvas,
    ImageSource,
    PixelBuffer,
    decode_image,
    encode_canvas,
    ensure_canvas_dimensions,
)
from schemas.image import DecodeOptions, EncodeOptions, ImageBlob

logger = logging.getLogger(__name__)

Backend = Union[CodecBackend, str, None]

# Marks an omitted decode timeout; None means wait indefinitely
SETTINGS_TIMEOUT = object()


def denormalize(values: np.ndarray) -> np.ndarray:
    """
    Map [0, 1] intensities to [0, 255] integers.

    Values are clamped to [0, 1] before scaling and NaN maps to 0.
    """
    array = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0)
    scaled = np.clip(array, 0.0, 1.0) * ImageConstants.MAX_INTENSITY
    return np.rint(scaled).astype(np.uint8)


def normalize(
    pixels: Union[PixelBuffer, np.ndarray],
    channels: int = ImageConstants.RGB_CHANNELS,
    dtype: Optional[str] = None,
) -> np.ndarray:
    """
    Map RGBA [0, 255] pixels to [0, 1] intensities.

    Args:
        pixels: PixelBuffer or (height, width, 4) uint8 array
        channels: 3 to drop alpha, 4 to keep it
        dtype: Output dtype (``settings.image.dtype`` by default)

    Returns:
        Array of shape (height, width, channels)
    """
    if channels not in (ImageConstants.RGB_CHANNELS, ImageConstants.RGBA_CHANNELS):
        raise ShapeValidationError(ErrorMessages.INVALID_CHANNELS.format(channels=channels))

    rgba = pixels.to_array() if isinstance(pixels, PixelBuffer) else np.asarray(pixels)
    dtype = dtype or get_settings().image.dtype
    return rgba[..., :channels].astype(dtype) / ImageConstants.MAX_INTENSITY


def tensor_to_pixels(tensor: np.ndarray) -> PixelBuffer:
    """Denormalize an (height, width, 3) tensor into an opaque RGBA buffer."""
    rgb = denormalize(tensor)
    height, width = rgb.shape[:2]
    alpha = np.full((height, width, 1), ImageConstants.OPAQUE_ALPHA, dtype=np.uint8)
    return PixelBuffer.from_array(np.concatenate([rgb, alpha], axis=2))


def to_image_blob(
    tensor: np.ndarray,
    format: Optional[str] = None,
    quality: Optional[float] = None,
    backend: Backend = None,
) -> Awaitable[ImageBlob]:
    """
    Convert a 3D tensor to an encoded PNG or JPEG image.

    Shape, options and canvas size are validated immediately; encoding is
    delivered through the returned awaitable.

    Args:
        tensor: Array of shape (height, width, 3) with values in [0, 1]
        format: image/png or image/jpeg (``settings.image.default_format`` by default)
        quality: JPEG quality (0-1), ignored for PNG
        backend: Codec implementation (``settings.image.codec_backend`` by default)

    Returns:
        Awaitable resolving to the ImageBlob

    Raises:
        ShapeValidationError: If the tensor is not (height, width, 3)
        CanvasUnavailableError: If the image is too small or too large for a canvas
        ImageEncodeError: (on await) if the encoder fails or produces no output
    """
    array = np.asarray(tensor)
    if array.ndim != ImageConstants.TENSOR_RANK or array.shape[2] != ImageConstants.RGB_CHANNELS:
        logger.error(f"Cannot encode tensor of shape {array.shape} as RGB image")
        raise ShapeValidationError(ErrorMessages.IMAGE_SHAPE)

    settings = get_settings().image
    options = EncodeOptions(
        format=format or settings.default_format,
        quality=quality if quality is not None else settings.jpeg_quality,
    )

    height, width = array.shape[:2]
    ensure_canvas_dimensions(width, height, settings.max_canvas_dimension)

    pixels = tensor_to_pixels(array)
    return _encode(pixels, options, backend, settings.encode_timeout_seconds)


async def _encode(
    pixels: PixelBuffer, options: EncodeOptions, backend: Backend, timeout: Optional[float]
) -> ImageBlob:
    with Canvas(pixels.width, pixels.height) as canvas:
        canvas.put_image_data(pixels, 0, 0)
        data = await encode_canvas(
            canvas, options.format, options.quality, backend=backend, timeout=timeout
        )

    logger.debug(
        f"Encoded {pixels.width}x{pixels.height} tensor to {options.format} ({len(data)} bytes)"
    )
    return ImageBlob(data=data, mime_type=options.format)


def from_image_blob(
    blob: Union[ImageBlob, bytes],
    use_rgba: bool = False,
    timeout: Union[float, None, object] = SETTINGS_TIMEOUT,
    backend: Backend = None,
) -> Awaitable[np.ndarray]:
    """
    Convert an encoded PNG or JPEG image to a 3D tensor.

    Args:
        blob: ImageBlob, or raw bytes tagged by their file signature
        use_rgba: Keep the alpha channel (4 channels instead of 3)
        timeout: Decode timeout in seconds; None waits indefinitely
            (``settings.image.decode_timeout_seconds`` when omitted)
        backend: Codec implementation (``settings.image.codec_backend`` by default)

    Returns:
        Awaitable resolving to an array of shape (height, width, 3 or 4)
        with values in [0, 1]

    Raises:
        ImageDecodeError: (on await) if the bytes cannot be decoded
        DecodeTimeoutError: (on await) if decoding does not finish in time
        CanvasUnavailableError: (on await) if no canvas fits the decoded image
    """
    if not isinstance(blob, ImageBlob):
        blob = ImageBlob.from_bytes(blob)

    if timeout is SETTINGS_TIMEOUT:
        timeout = get_settings().image.decode_timeout_seconds
    options = DecodeOptions(use_rgba=use_rgba, timeout=timeout)
    return _decode(blob, options, backend)


async def _decode(blob: ImageBlob, options: DecodeOptions, backend: Backend) -> np.ndarray:
    with ImageSource(blob) as source:
        image = await decode_image(source, timeout=options.timeout, backend=backend)
        with Canvas(image.width, image.height) as canvas:
            canvas.draw_image(image, 0, 0)
            pixels = canvas.get_image_data(0, 0, image.width, image.height)

    tensor = normalize(pixels, options.channels)
    logger.debug(f"Decoded {blob.mime_type} image to tensor of shape {tensor.shape}")
    return tensor
