"""
Off-screen raster surfaces.

Provides the drawing primitives the image converters are built on:
- PixelBuffer: flat RGBA uint8 data plus width/height
- DecodedImage: a drawable image with its natural size
- Canvas: an off-screen RGBA surface with put/draw/read operations
- ImageSource: a transient handle over encoded bytes
- decode_image / encode_canvas: asynchronous codec calls

Codec work runs in the default executor so the event loop is never blocked;
completion is signalled by the executor future itself.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from core.config import get_settings
from core.constants import CodecBackend, ErrorMessages, ImageConstants
from core.exceptions import (
    CanvasUnavailableError,
    DecodeTimeoutError,
    ImageDecodeError,
    ImageEncodeError,
)
from core.image.converters import decode_rgba, encode_rgba
from schemas.image import ImageBlob

logger = logging.getLogger(__name__)

Region = Tuple[slice, slice]


@dataclass
class PixelBuffer:
    """RGBA pixel data, row-major, 4 bytes per pixel."""

    data: np.ndarray
    width: int
    height: int

    def __post_init__(self):
        if isinstance(self.data, (bytes, bytearray, memoryview)):
            self.data = np.frombuffer(self.data, dtype=np.uint8).copy()
        self.data = np.ascontiguousarray(self.data, dtype=np.uint8).reshape(-1)

        expected = self.width * self.height * ImageConstants.RGBA_CHANNELS
        if self.data.size != expected:
            raise ValueError(
                ErrorMessages.PIXEL_BUFFER_SIZE.format(
                    length=self.data.size,
                    width=self.width,
                    height=self.height,
                    expected=expected,
                )
            )

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> "PixelBuffer":
        """Build a buffer from a (height, width, 4) array."""
        height, width = rgba.shape[:2]
        return cls(data=rgba, width=width, height=height)

    def to_array(self) -> np.ndarray:
        """View the buffer as a (height, width, 4) array."""
        return self.data.reshape(self.height, self.width, ImageConstants.RGBA_CHANNELS)


@dataclass
class DecodedImage:
    """Decoded image ready to be drawn onto a canvas."""

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


def ensure_canvas_dimensions(
    width: int, height: int, max_dimension: Optional[int] = None
) -> None:
    """
    Check that a canvas of the given size can be created.

    Raises:
        CanvasUnavailableError: If either dimension is out of range
    """
    if max_dimension is None:
        max_dimension = get_settings().image.max_canvas_dimension
    low = ImageConstants.MIN_CANVAS_DIMENSION
    if not (low <= width <= max_dimension and low <= height <= max_dimension):
        message = ErrorMessages.CANVAS_DIMENSIONS.format(
            width=width, height=height, min=low, max=max_dimension
        )
        logger.error(f"{ErrorMessages.CANVAS_CONTEXT}: {message}")
        raise CanvasUnavailableError(message)


class Canvas:
    """
    Off-screen RGBA drawing surface.

    A new canvas is transparent black. Use it as a context manager so the
    backing buffer is released on every exit path.
    """

    def __init__(self, width: int, height: int, max_dimension: Optional[int] = None):
        ensure_canvas_dimensions(width, height, max_dimension)
        self.width = width
        self.height = height
        self._pixels: Optional[np.ndarray] = np.zeros(
            (height, width, ImageConstants.RGBA_CHANNELS), dtype=np.uint8
        )
        logger.debug(f"Canvas acquired: {width}x{height}")

    @property
    def closed(self) -> bool:
        return self._pixels is None

    def _surface(self) -> np.ndarray:
        if self._pixels is None:
            raise CanvasUnavailableError(ErrorMessages.CANVAS_CLOSED)
        return self._pixels

    def _clip(self, x: int, y: int, width: int, height: int) -> Optional[Tuple[Region, Region]]:
        """Return (canvas region, source region) slices of the visible overlap."""
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + width, self.width), min(y + height, self.height)
        if x1 <= x0 or y1 <= y0:
            return None
        target = (slice(y0, y1), slice(x0, x1))
        source = (slice(y0 - y, y1 - y), slice(x0 - x, x1 - x))
        return target, source

    def put_image_data(self, pixels: PixelBuffer, x: int = 0, y: int = 0) -> None:
        """Write pixels verbatim (no compositing) with their top-left at (x, y)."""
        surface = self._surface()
        regions = self._clip(x, y, pixels.width, pixels.height)
        if regions is None:
            return
        target, source = regions
        surface[target] = pixels.to_array()[source]

    def draw_image(self, image: DecodedImage, x: int = 0, y: int = 0) -> None:
        """Draw an image with source-over compositing, its top-left at (x, y)."""
        surface = self._surface()
        regions = self._clip(x, y, image.width, image.height)
        if regions is None:
            return
        target, source = regions

        src = image.pixels[source].astype(np.float64) / ImageConstants.MAX_INTENSITY
        dst = surface[target].astype(np.float64) / ImageConstants.MAX_INTENSITY
        src_alpha = src[..., 3:]
        dst_alpha = dst[..., 3:] * (1.0 - src_alpha)
        out_alpha = src_alpha + dst_alpha

        with np.errstate(invalid="ignore", divide="ignore"):
            out_rgb = (src[..., :3] * src_alpha + dst[..., :3] * dst_alpha) / out_alpha
        out_rgb = np.where(out_alpha > 0, out_rgb, 0.0)

        blended = np.concatenate([out_rgb, out_alpha], axis=-1)
        surface[target] = np.rint(blended * ImageConstants.MAX_INTENSITY).astype(np.uint8)

    def get_image_data(self, x: int, y: int, width: int, height: int) -> PixelBuffer:
        """
        Read back a rectangle of pixels.

        Pixels outside the surface read as transparent black.
        """
        surface = self._surface()
        if width < 1 or height < 1:
            raise ValueError(f"Invalid read rectangle: {width}x{height}")

        result = np.zeros((height, width, ImageConstants.RGBA_CHANNELS), dtype=np.uint8)
        regions = self._clip(x, y, width, height)
        if regions is not None:
            target, source = regions
            result[source] = surface[target]
        return PixelBuffer.from_array(result)

    def close(self) -> None:
        """Release the backing buffer."""
        if self._pixels is not None:
            self._pixels = None
            logger.debug(f"Canvas released: {self.width}x{self.height}")

    def __enter__(self) -> "Canvas":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ImageSource:
    """
    Transient readable handle over encoded image bytes.

    The handle must be released once the image has been read; release is
    performed at most once however often it is requested.
    """

    def __init__(self, blob: ImageBlob):
        self.mime_type = blob.mime_type
        self._stream: Optional[io.BytesIO] = io.BytesIO(blob.data)
        self.release_count = 0

    @property
    def released(self) -> bool:
        return self._stream is None

    def read(self) -> bytes:
        if self._stream is None:
            raise ImageDecodeError(ErrorMessages.IMAGE_SOURCE_RELEASED)
        return self._stream.getvalue()

    def release(self) -> None:
        if self._stream is None:
            return
        self._stream.close()
        self._stream = None
        self.release_count += 1

    def __enter__(self) -> "ImageSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def _resolve_backend(backend: Union[CodecBackend, str, None]) -> CodecBackend:
    if backend is None:
        return get_settings().image.codec_backend
    try:
        return CodecBackend(backend)
    except ValueError as e:
        raise ValueError(ErrorMessages.UNKNOWN_BACKEND.format(backend=backend)) from e


async def decode_image(
    source: ImageSource,
    timeout: Optional[float] = None,
    backend: Union[CodecBackend, str, None] = None,
) -> DecodedImage:
    """
    Decode an image source without blocking the event loop.

    Args:
        source: Open image source
        timeout: Seconds to wait before failing; None waits indefinitely
        backend: Codec implementation (defaults to settings)

    Returns:
        DecodedImage with the image's natural size

    Raises:
        ImageDecodeError: If the bytes cannot be decoded
        DecodeTimeoutError: If decoding does not finish in time
    """
    backend = _resolve_backend(backend)
    data = source.read()
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, decode_rgba, data, backend)

    try:
        pixels = await asyncio.wait_for(future, timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"Image decode timed out after {timeout}s")
        raise DecodeTimeoutError(ErrorMessages.IMAGE_LOAD_TIMEOUT.format(timeout=timeout)) from e
    except Exception as e:
        logger.error(f"Failed to decode {source.mime_type} image: {e}")
        raise ImageDecodeError(ErrorMessages.IMAGE_LOAD_FAILED.format(error=e)) from e

    logger.debug(f"Decoded {source.mime_type} image: {pixels.shape[1]}x{pixels.shape[0]}")
    return DecodedImage(pixels=pixels)


async def encode_canvas(
    canvas: Canvas,
    mime_type: str = ImageConstants.DEFAULT_MIME_TYPE,
    quality: Optional[float] = None,
    backend: Union[CodecBackend, str, None] = None,
    timeout: Optional[float] = None,
) -> bytes:
    """
    Encode the full canvas to image bytes without blocking the event loop.

    Args:
        canvas: Canvas to encode
        mime_type: image/png or image/jpeg
        quality: JPEG quality (0-1), None for the codec default
        backend: Codec implementation (defaults to settings)
        timeout: Seconds to wait before failing; None waits indefinitely

    Returns:
        Encoded bytes

    Raises:
        ImageEncodeError: If encoding fails or produces no output
    """
    backend = _resolve_backend(backend)
    # Pixels are captured before the first suspension point
    pixels = canvas.get_image_data(0, 0, canvas.width, canvas.height).to_array()
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, encode_rgba, pixels, mime_type, quality, backend)

    try:
        data = await asyncio.wait_for(future, timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"Image encode timed out after {timeout}s")
        raise ImageEncodeError(
            ErrorMessages.BLOB_CONVERSION_TIMEOUT.format(timeout=timeout)
        ) from e
    except Exception as e:
        logger.error(f"Failed to encode canvas to {mime_type}: {e}")
        raise ImageEncodeError(f"{ErrorMessages.BLOB_CONVERSION_FAILED}: {e}") from e

    if not data:
        logger.error(f"Encoder produced no output for {mime_type}")
        raise ImageEncodeError(ErrorMessages.BLOB_CONVERSION_FAILED)

    return data
