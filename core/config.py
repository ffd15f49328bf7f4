"""
Configuration for the converters.

Settings are read from environment variables prefixed with ``DFCONV_``;
nested sections use ``__`` as delimiter, e.g.
``DFCONV_IMAGE__CODEC_BACKEND=opencv`` or ``DFCONV_SYSTEM__LOG_LEVEL=DEBUG``.
"""

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import (
    CodecBackend,
    ImageConstants,
    SystemConstants,
    TabularConstants,
)


class SystemSettings(BaseModel):
    """Logging settings."""

    log_level: str = Field(
        default=SystemConstants.LOG_LEVEL_DEFAULT, description="Root logging level"
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


class ImageSettings(BaseModel):
    """Image encode/decode settings."""

    default_format: Literal["image/png", "image/jpeg"] = Field(
        default=ImageConstants.DEFAULT_MIME_TYPE, description="MIME type used when none is given"
    )
    jpeg_quality: Optional[float] = Field(
        default=None,
        ge=ImageConstants.MIN_QUALITY,
        le=ImageConstants.MAX_QUALITY,
        description="JPEG quality (0-1) used when none is given; None keeps the codec default",
    )
    decode_timeout_seconds: Optional[float] = Field(
        default=ImageConstants.DEFAULT_DECODE_TIMEOUT_SECONDS,
        gt=0,
        description="Decode timeout; None waits indefinitely",
    )
    encode_timeout_seconds: Optional[float] = Field(
        default=ImageConstants.DEFAULT_ENCODE_TIMEOUT_SECONDS,
        gt=0,
        description="Encode timeout; None waits indefinitely",
    )
    codec_backend: CodecBackend = Field(
        default=CodecBackend.PILLOW, description="Raster codec implementation"
    )
    max_canvas_dimension: int = Field(
        default=ImageConstants.MAX_CANVAS_DIMENSION,
        ge=ImageConstants.MIN_CANVAS_DIMENSION,
        description="Largest allowed canvas width or height",
    )
    dtype: str = Field(default=ImageConstants.DEFAULT_DTYPE, description="Image tensor dtype")


class TabularSettings(BaseModel):
    """DataFrame conversion settings."""

    dtype: str = Field(
        default=TabularConstants.DEFAULT_DTYPE, description="dtype for numeric tabular tensors"
    )


class Settings(BaseSettings):
    """Top-level settings."""

    model_config = SettingsConfigDict(
        env_prefix=SystemConstants.ENV_PREFIX,
        env_nested_delimiter=SystemConstants.ENV_NESTED_DELIMITER,
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    image: ImageSettings = Field(default_factory=ImageSettings)
    tabular: TabularSettings = Field(default_factory=TabularSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.system.log_level),
        format=SystemConstants.LOG_FORMAT,
    )
