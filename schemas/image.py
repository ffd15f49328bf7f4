"""
Image models.

This module contains models for encoded images and codec options:
- ImageBlob: encoded PNG/JPEG bytes tagged with a MIME type
- EncodeOptions / DecodeOptions: validated conversion parameters
"""

import base64
import binascii
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.constants import ImageConstants

MimeType = Literal["image/png", "image/jpeg"]


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Return the MIME type matching the file signature of ``data``, if any."""
    if data.startswith(ImageConstants.PNG_SIGNATURE):
        return ImageConstants.MIME_PNG
    if data.startswith(ImageConstants.JPEG_SIGNATURE):
        return ImageConstants.MIME_JPEG
    return None


class ImageBlob(BaseModel):
    """Encoded image bytes with their MIME type"""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., description="Encoded image bytes")
    mime_type: MimeType = Field(
        default=ImageConstants.DEFAULT_MIME_TYPE, description="MIME type of the encoded bytes"
    )

    @property
    def size(self) -> int:
        """Number of encoded bytes."""
        return len(self.data)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: Optional[str] = None) -> "ImageBlob":
        """
        Wrap raw bytes, detecting the MIME type from the file signature.

        Args:
            data: Encoded image bytes
            mime_type: Explicit MIME type; detected when omitted

        Returns:
            ImageBlob (tagged with the default MIME type if detection fails)
        """
        if mime_type is None:
            mime_type = sniff_mime_type(data) or ImageConstants.DEFAULT_MIME_TYPE
        return cls(data=bytes(data), mime_type=mime_type)

    def to_base64(self) -> str:
        """Encode the image bytes as a base64 string."""
        return base64.b64encode(self.data).decode("utf-8")

    @classmethod
    def from_base64(cls, base64_string: str, mime_type: Optional[str] = None) -> "ImageBlob":
        """
        Build a blob from a base64 string.

        Raises:
            ValueError: If the string is not valid base64
        """
        try:
            data = base64.b64decode(base64_string, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e
        return cls.from_bytes(data, mime_type)


class EncodeOptions(BaseModel):
    """Parameters for encoding a canvas to image bytes."""

    model_config = ConfigDict(extra="forbid")

    format: MimeType = Field(
        default=ImageConstants.DEFAULT_MIME_TYPE, description="Output MIME type"
    )
    quality: Optional[float] = Field(
        default=None,
        ge=ImageConstants.MIN_QUALITY,
        le=ImageConstants.MAX_QUALITY,
        description="JPEG quality (0-1), ignored for PNG; None keeps the codec default",
    )


class DecodeOptions(BaseModel):
    """Parameters for decoding image bytes to a tensor."""

    model_config = ConfigDict(extra="forbid")

    use_rgba: bool = Field(default=False, description="Keep the alpha channel")
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Decode timeout in seconds; None waits indefinitely"
    )

    @property
    def channels(self) -> int:
        return ImageConstants.RGBA_CHANNELS if self.use_rgba else ImageConstants.RGB_CHANNELS
