import numpy as np
import pytest

from linmat import (
    IndexOutOfBounds,
    InvalidShape,
    Shape,
    ShapeMismatch,
    check_multiply,
    compatible_for_multiply,
    output_shape,
)


def test_shape_basics():
    s = Shape(2, 3)
    assert s == (2, 3)
    assert s.rows == 2
    assert s.cols == 3
    assert s.size == 6
    assert s.transposed() == (3, 2)
    assert repr(s) == "Shape(rows=2, cols=3)"


def test_shape_accepts_numpy_integers():
    s = Shape(np.int64(4), np.int32(1))
    assert s == (4, 1)
    assert type(s.rows) is int


@pytest.mark.parametrize("dims", [(0, 3), (3, 0), (-1, 2), (2.5, 3), (True, 1), ("2", 2)])
def test_shape_rejects_bad_dimensions(dims):
    with pytest.raises(InvalidShape):
        Shape(*dims)


def test_shape_of_coerces_pairs():
    assert Shape.of((2, 3)) == Shape(2, 3)
    assert Shape.of([5, 1]).rows == 5
    s = Shape(1, 1)
    assert Shape.of(s) is s
    with pytest.raises(InvalidShape):
        Shape.of((1, 2, 3))
    with pytest.raises(InvalidShape):
        Shape.of(7)


def test_shape_index_checks():
    s = Shape(2, 3)
    assert s.contains(0, 0)
    assert s.contains(1, 2)
    assert not s.contains(2, 0)
    assert not s.contains(0, -1)
    with pytest.raises(IndexOutOfBounds) as excinfo:
        s.check_index(0, 3)
    assert excinfo.value.index == (0, 3)
    assert excinfo.value.shape == (2, 3)
    assert isinstance(excinfo.value, IndexError)


def test_multiply_compatibility():
    assert compatible_for_multiply((2, 3), (3, 4))
    assert not compatible_for_multiply((2, 3), (2, 3))
    assert compatible_for_multiply(Shape(1, 1), Shape(1, 9))


def test_output_shape():
    assert output_shape((2, 3), (3, 4)) == (2, 4)
    assert output_shape((1, 5), (5, 1)) == (1, 1)
    assert isinstance(output_shape((2, 3), (3, 4)), Shape)


def test_check_multiply():
    assert check_multiply((4, 2), (2, 7)) == (4, 7)
    with pytest.raises(ShapeMismatch) as excinfo:
        check_multiply((2, 3), (2, 3))
    err = excinfo.value
    assert err.lhs == (2, 3)
    assert err.rhs == (2, 3)
    assert isinstance(err, ValueError)
    assert "2x3" in str(err)
