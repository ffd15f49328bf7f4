"""
Conversions between DataFrames, tensors and encoded images.

- tabular: DataFrame <-> 2D tensor
- image: 3D tensor <-> PNG/JPEG ImageBlob
"""

from converters.image import denormalize, from_image_blob, normalize, to_image_blob
from converters.tabular import from_tensor, to_tensor

__all__ = [
    "to_tensor",
    "from_tensor",
    "to_image_blob",
    "from_image_blob",
    "normalize",
    "denormalize",
]
