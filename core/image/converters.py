"""
Raster codec utilities.

Handles conversions between RGBA pixel arrays and encoded image bytes:
- NumPy RGBA arrays <-> PIL Images
- PNG/JPEG encoding and decoding through Pillow or OpenCV
- OpenCV BGR(A) <-> RGBA channel ordering
- EXIF orientation, applied on decode by both backends
"""

import io
import logging
from typing import Optional, Union

import cv2
import numpy as np
from PIL import ExifTags, Image, ImageOps, UnidentifiedImageError

from core.constants import CodecBackend, ErrorMessages, ImageConstants

logger = logging.getLogger(__name__)

# 16-bit grayscale modes produced by Pillow for deep PNGs
_WIDE_MODES = ("I", "I;16", "I;16B", "I;16L")

# EXIF orientation -> transform to the displayed orientation
_CV2_ORIENTATIONS = {
    2: lambda image: cv2.flip(image, 1),
    3: lambda image: cv2.rotate(image, cv2.ROTATE_180),
    4: lambda image: cv2.flip(image, 0),
    5: cv2.transpose,
    6: lambda image: cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE),
    7: lambda image: cv2.flip(cv2.transpose(image), -1),
    8: lambda image: cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE),
}


def codec_quality(quality: float) -> int:
    """Map a normalized 0-1 quality onto the 1-100 scale used by the codecs."""
    scaled = int(round(quality * ImageConstants.CODEC_MAX_QUALITY))
    return max(ImageConstants.CODEC_MIN_QUALITY, min(scaled, ImageConstants.CODEC_MAX_QUALITY))


def rgba_to_pil(pixels: np.ndarray) -> Image.Image:
    """
    Convert an RGBA pixel array to a PIL Image.

    Args:
        pixels: uint8 array of shape (height, width, 4)

    Returns:
        PIL Image in RGBA mode
    """
    return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))


def pil_to_rgba(image: Image.Image) -> np.ndarray:
    """
    Convert a PIL Image of any mode to an RGBA pixel array.

    Args:
        image: PIL Image

    Returns:
        uint8 array of shape (height, width, 4)
    """
    if image.mode in _WIDE_MODES:
        wide = np.asarray(image, dtype=np.uint32)
        image = Image.fromarray((wide >> 8).astype(np.uint8))

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    return np.array(image, dtype=np.uint8)


def bgr_to_rgba(image: np.ndarray) -> np.ndarray:
    """
    Convert an OpenCV image (grayscale, BGR or BGRA) to RGBA.

    Args:
        image: NumPy array as returned by cv2.imdecode

    Returns:
        uint8 array of shape (height, width, 4)
    """
    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)


def encode_rgba(
    pixels: np.ndarray,
    mime_type: str = ImageConstants.DEFAULT_MIME_TYPE,
    quality: Optional[float] = None,
    backend: Union[CodecBackend, str] = CodecBackend.PILLOW,
) -> bytes:
    """
    Encode an RGBA pixel array to PNG or JPEG bytes.

    JPEG output drops the alpha channel.

    Args:
        pixels: uint8 array of shape (height, width, 4)
        mime_type: image/png or image/jpeg
        quality: JPEG quality (0-1), None for the codec default
        backend: Codec implementation

    Returns:
        Encoded bytes (empty if the encoder produced no output)
    """
    if mime_type not in ImageConstants.SUPPORTED_MIME_TYPES:
        raise ValueError(ErrorMessages.UNSUPPORTED_FORMAT.format(format=mime_type))

    backend = CodecBackend(backend)
    if backend == CodecBackend.OPENCV:
        return _encode_opencv(pixels, mime_type, quality)
    return _encode_pillow(pixels, mime_type, quality)


def decode_rgba(
    data: bytes, backend: Union[CodecBackend, str] = CodecBackend.PILLOW
) -> np.ndarray:
    """
    Decode PNG or JPEG bytes to an RGBA pixel array.

    The EXIF orientation tag is applied, so the result has the image's
    displayed size.

    Args:
        data: Encoded image bytes
        backend: Codec implementation

    Returns:
        uint8 array of shape (height, width, 4)

    Raises:
        ValueError: If the bytes are empty or cannot be decoded
        OSError: If Pillow cannot identify the image
    """
    if not data:
        raise ValueError("Image data is empty")

    backend = CodecBackend(backend)
    if backend == CodecBackend.OPENCV:
        return _decode_opencv(data)
    return _decode_pillow(data)


def _encode_pillow(pixels: np.ndarray, mime_type: str, quality: Optional[float]) -> bytes:
    image = rgba_to_pil(pixels)

    buffer = io.BytesIO()
    save_kwargs = {"format": ImageConstants.PIL_FORMATS[mime_type]}

    if mime_type == ImageConstants.MIME_JPEG:
        image = image.convert("RGB")
        if quality is not None:
            save_kwargs["quality"] = codec_quality(quality)
        save_kwargs["optimize"] = True

    image.save(buffer, **save_kwargs)
    return buffer.getvalue()


def _encode_opencv(pixels: np.ndarray, mime_type: str, quality: Optional[float]) -> bytes:
    params = []
    if mime_type == ImageConstants.MIME_JPEG:
        image = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGR)
        if quality is not None:
            params = [cv2.IMWRITE_JPEG_QUALITY, codec_quality(quality)]
    else:
        image = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGRA)

    success, buffer = cv2.imencode(ImageConstants.CV2_EXTENSIONS[mime_type], image, params)
    if not success:
        logger.warning(f"OpenCV produced no output for {mime_type}")
        return b""
    return buffer.tobytes()


def exif_orientation(data: bytes) -> int:
    """
    Read the EXIF orientation tag of encoded image bytes.

    Returns:
        Orientation value 1-8 (1 when the tag is missing or unreadable)
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            return int(image.getexif().get(ExifTags.Base.Orientation, 1))
    except UnidentifiedImageError:
        logger.debug("No EXIF data readable, assuming upright image")
        return 1


def _decode_pillow(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as image:
        image.load()
        return pil_to_rgba(ImageOps.exif_transpose(image))


def _decode_opencv(data: bytes) -> np.ndarray:
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError("OpenCV could not decode image data")

    transform = _CV2_ORIENTATIONS.get(exif_orientation(data))
    if transform is not None:
        image = transform(image)
    return bgr_to_rgba(image)
