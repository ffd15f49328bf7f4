"""
Pytest configuration and fixtures for converter tests
"""

import base64
import io

import numpy as np
import pandas as pd
import pytest
from PIL import Image

from core.config import get_settings
from schemas.image import ImageBlob

# 4x4 solid red RGB PNG
RED_PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAQAAAAECAIAAAAmkwkpAAAAEElEQVR4nGP8z4AATAxEcQAz0QEHOoQ+uAAAAABJRU5ErkJggg=="
)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so environment overrides apply per test"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def red_png_bytes():
    """Encoded 4x4 solid red PNG"""
    return base64.b64decode(RED_PNG_BASE64)


@pytest.fixture
def red_blob(red_png_bytes):
    """4x4 solid red PNG wrapped as ImageBlob"""
    return ImageBlob(data=red_png_bytes, mime_type="image/png")


@pytest.fixture
def sample_frame():
    """Two-row numeric DataFrame"""
    return pd.DataFrame([{"feature1": 1, "feature2": 2}, {"feature1": 3, "feature2": 4}])


@pytest.fixture
def rgb_tensor():
    """2x2 RGB tensor with primary and secondary colors"""
    return np.array(
        [[[1, 0, 0], [0, 1, 0]], [[0, 0, 1], [1, 1, 0]]],
        dtype=np.float32,
    )


@pytest.fixture
def solid_red_tensor():
    """8x8 solid red tensor"""
    tensor = np.zeros((8, 8, 3), dtype=np.float32)
    tensor[..., 0] = 1.0
    return tensor


def encode_pil(image: Image.Image, format: str = "PNG") -> bytes:
    """Encode a PIL image to bytes"""
    buffer = io.BytesIO()
    image.save(buffer, format=format)
    return buffer.getvalue()


@pytest.fixture
def pil_encoder():
    """Helper to encode PIL images inside tests"""
    return encode_pil
