"""
DataFrame <-> tensor conversion.

A DataFrame with N rows and M columns maps to an (N, M) array whose
element [i, j] is row i's value under the j-th column, columns taken in the
frame's own order.
"""

import logging
from typing import Any, Awaitable, Optional, Sequence

import numpy as np
import pandas as pd

from core.config import get_settings
from core.constants import ErrorMessages, TabularConstants
from core.exceptions import ShapeValidationError

logger = logging.getLogger(__name__)

# numpy dtype kinds cast to the configured float dtype; bool is kept
_NUMERIC_KINDS = "iuf"


async def _resolved(value: Any) -> Any:
    return value


def _duplicates(names: Sequence[Any]) -> list:
    seen, duplicated = set(), []
    for name in names:
        if name in seen and name not in duplicated:
            duplicated.append(name)
        seen.add(name)
    return duplicated


def to_tensor(frame: pd.DataFrame, dtype: Optional[str] = None) -> np.ndarray:
    """
    Convert a DataFrame to a 2D tensor.

    Rows are serialized as records, read in column order, flattened and
    reshaped to (rows, columns). Numeric data is cast to ``dtype``
    (``settings.tabular.dtype`` by default); boolean and other data keep
    numpy's own inferred dtype.

    Args:
        frame: DataFrame to convert
        dtype: Float dtype for numeric data

    Returns:
        Array of shape (len(frame), len(frame.columns))

    Raises:
        ShapeValidationError: If the column names are not unique
    """
    columns = list(frame.columns)
    duplicated = _duplicates(columns)
    if duplicated:
        raise ShapeValidationError(ErrorMessages.DUPLICATE_COLUMNS.format(columns=duplicated))

    records = frame.to_dict(orient=TabularConstants.RECORDS_ORIENT)
    values = [row[column] for row in records for column in columns]
    shape = (len(frame), len(columns))

    tensor = np.asarray(values).reshape(shape)
    if tensor.dtype.kind in _NUMERIC_KINDS:
        tensor = tensor.astype(dtype or get_settings().tabular.dtype)

    logger.debug(f"Converted DataFrame to tensor of shape {tensor.shape} ({tensor.dtype})")
    return tensor


def from_tensor(
    tensor: np.ndarray, columns: Optional[Sequence[str]] = None
) -> Awaitable[pd.DataFrame]:
    """
    Convert a 2D tensor to a DataFrame.

    Each first-axis index becomes a row and the k-th value of that row is
    stored under ``columns[k]``. Array columns beyond the supplied names are
    dropped; names beyond the array width get missing values. Without
    names every row is empty.

    Validation happens immediately; the frame itself is delivered through
    the returned awaitable.

    Args:
        tensor: 2D array
        columns: Ordered column names

    Returns:
        Awaitable resolving to the DataFrame

    Raises:
        ShapeValidationError: If the tensor is not 2D or names repeat
    """
    array = np.asarray(tensor)
    if array.ndim != TabularConstants.TENSOR_RANK:
        logger.error(f"Cannot build DataFrame from tensor of shape {array.shape}")
        raise ShapeValidationError(ErrorMessages.TABULAR_RANK)

    names = list(columns) if columns is not None else []
    duplicated = _duplicates(names)
    if duplicated:
        raise ShapeValidationError(ErrorMessages.DUPLICATE_COLUMNS.format(columns=duplicated))

    width = array.shape[1]
    data = []
    for row_values in array.tolist():
        row = {}
        for index, name in enumerate(names):
            row[name] = row_values[index] if index < width else None
        data.append(row)

    frame = pd.DataFrame(data, columns=names, index=pd.RangeIndex(len(data)))
    logger.debug(f"Converted tensor of shape {array.shape} to DataFrame with columns {names}")
    return _resolved(frame)
