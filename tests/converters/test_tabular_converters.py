"""
Tests for DataFrame <-> tensor conversion
"""

import asyncio

import numpy as np
import pandas as pd
import pytest

from converters import from_tensor, to_tensor
from core.exceptions import ShapeValidationError


class TestToTensor:
    """Test DataFrame -> tensor conversion"""

    def test_converts_dataframe_to_2d_tensor(self, sample_frame):
        """Test values and shape of the concrete two-row scenario"""
        tensor = to_tensor(sample_frame)

        assert tensor.shape == (2, 2)
        assert tensor.tolist() == [[1, 2], [3, 4]]

    def test_shape_matches_rows_and_columns(self):
        """Test shape invariant for a wider frame"""
        frame = pd.DataFrame(np.arange(15).reshape(5, 3), columns=["x", "y", "z"])

        tensor = to_tensor(frame)

        assert tensor.shape == (len(frame), len(frame.columns))

    def test_follows_frame_column_order(self):
        """Test columns are read in the frame's own order"""
        frame = pd.DataFrame({"b": [1.0, 3.0], "a": [2.0, 4.0]})

        tensor = to_tensor(frame)

        np.testing.assert_array_equal(tensor, [[1.0, 2.0], [3.0, 4.0]])

    def test_preserves_row_order(self):
        """Test rows keep their order even with a shuffled index"""
        frame = pd.DataFrame({"v": [30, 10, 20]}, index=[2, 0, 1])

        tensor = to_tensor(frame)

        assert tensor[:, 0].tolist() == [30, 10, 20]

    def test_numeric_data_uses_float_dtype(self, sample_frame):
        """Test integer input is cast to the configured float dtype"""
        assert to_tensor(sample_frame).dtype == np.float64
        assert to_tensor(sample_frame, dtype="float32").dtype == np.float32

    def test_dtype_from_environment(self, sample_frame, monkeypatch):
        """Test the tabular dtype setting is honored"""
        monkeypatch.setenv("DFCONV_TABULAR__DTYPE", "float32")

        assert to_tensor(sample_frame).dtype == np.float32

    def test_non_numeric_values_left_to_numpy(self):
        """Test string data keeps numpy's inferred dtype"""
        frame = pd.DataFrame({"name": ["a", "b"], "value": [1, 2]})

        tensor = to_tensor(frame)

        assert tensor.dtype.kind == "U"
        assert tensor[0, 0] == "a"
        assert tensor[1, 0] == "b"

    def test_boolean_values_keep_bool_dtype(self):
        """Test all-boolean data is not cast to float"""
        frame = pd.DataFrame({"a": [True, False], "b": [False, False]})

        tensor = to_tensor(frame)

        assert tensor.dtype == np.bool_
        assert tensor.tolist() == [[True, False], [False, False]]

    def test_empty_frame(self):
        """Test a frame without rows keeps its column count"""
        frame = pd.DataFrame(columns=["a", "b"])

        tensor = to_tensor(frame)

        assert tensor.shape == (0, 2)

    def test_duplicate_columns_rejected(self):
        """Test duplicated column names fail validation"""
        frame = pd.DataFrame([[1, 2]], columns=["a", "a"])

        with pytest.raises(ShapeValidationError, match="unique"):
            to_tensor(frame)

    def test_does_not_mutate_frame(self, sample_frame):
        """Test the source frame is untouched"""
        before = sample_frame.copy()

        tensor = to_tensor(sample_frame)
        tensor[0, 0] = 99

        pd.testing.assert_frame_equal(sample_frame, before)


class TestFromTensor:
    """Test tensor -> DataFrame conversion"""

    def test_converts_tensor_to_dataframe(self):
        """Test the concrete two-row scenario"""
        tensor = np.array([[1, 2], [3, 4]], dtype=np.float32)

        frame = asyncio.run(from_tensor(tensor, ["feature1", "feature2"]))

        assert frame.to_dict(orient="records") == [
            {"feature1": 1, "feature2": 2},
            {"feature1": 3, "feature2": 4},
        ]
        assert list(frame.columns) == ["feature1", "feature2"]

    def test_accepts_nested_lists(self):
        """Test plain Python lists are accepted"""
        frame = asyncio.run(from_tensor([[1, 2], [3, 4]], ["a", "b"]))

        assert frame["a"].tolist() == [1, 3]
        assert frame["b"].tolist() == [2, 4]

    @pytest.mark.parametrize("shape", [(4,), (2, 2, 2), ()])
    def test_rejects_non_2d_tensor(self, shape):
        """Test validation of tensor rank"""
        tensor = np.zeros(shape)

        with pytest.raises(ShapeValidationError, match="Only 2D tensors can be converted"):
            from_tensor(tensor, ["a"])

    def test_shape_error_is_a_value_error(self):
        """Test shape errors can be caught as ValueError"""
        with pytest.raises(ValueError):
            from_tensor(np.zeros(3))

    def test_short_column_list_drops_extra_values(self):
        """Test array columns without a name are dropped"""
        tensor = np.array([[1, 2, 3], [4, 5, 6]])

        frame = asyncio.run(from_tensor(tensor, ["a"]))

        assert list(frame.columns) == ["a"]
        assert frame["a"].tolist() == [1, 4]

    def test_long_column_list_gives_missing_values(self):
        """Test names beyond the array width hold missing values"""
        tensor = np.array([[1, 2], [3, 4]])

        frame = asyncio.run(from_tensor(tensor, ["a", "b", "c"]))

        assert list(frame.columns) == ["a", "b", "c"]
        assert frame["c"].isna().all()

    def test_without_columns_rows_are_empty(self):
        """Test rows without named fields are still produced"""
        tensor = np.array([[1, 2], [3, 4]])

        frame = asyncio.run(from_tensor(tensor))

        assert len(frame) == 2
        assert len(frame.columns) == 0

    def test_duplicate_column_names_rejected(self):
        """Test repeated names fail validation"""
        with pytest.raises(ShapeValidationError):
            from_tensor(np.zeros((2, 2)), ["a", "a"])

    def test_does_not_mutate_tensor(self):
        """Test the source tensor is untouched"""
        tensor = np.array([[1.0, 2.0], [3.0, 4.0]])
        before = tensor.copy()

        frame = asyncio.run(from_tensor(tensor, ["a", "b"]))
        frame.loc[0, "a"] = 99.0

        np.testing.assert_array_equal(tensor, before)


class TestTabularRoundTrip:
    """Test DataFrame -> tensor -> DataFrame"""

    def test_round_trip_reproduces_values(self):
        """Test values survive the round trip"""
        frame = pd.DataFrame(
            {"alpha": [0.5, 1.5, -2.0], "beta": [10, 20, 30], "gamma": [1, 0, 1]}
        )

        tensor = to_tensor(frame)
        restored = asyncio.run(from_tensor(tensor, list(frame.columns)))

        assert list(restored.columns) == list(frame.columns)
        np.testing.assert_allclose(restored.to_numpy(dtype=float), frame.to_numpy(dtype=float))
