"""Matrix shapes and multiplication compatibility.

A :class:`Shape` is stored by value inside every matrix and is the only
place bounds and compatibility are decided.
"""

import numbers

from .errors import IndexOutOfBounds, InvalidShape, ShapeMismatch


class Shape(tuple):
    """Immutable ``(rows, cols)`` pair with both dimensions >= 1.

    Compares equal to a plain tuple, so ``m.shape == (2, 3)`` works.

    Raises
    ------
    InvalidShape
        If a dimension is not an integer or is smaller than 1.
    """

    __slots__ = ()

    def __new__(cls, rows, cols):
        for dim in (rows, cols):
            if isinstance(dim, bool) or not isinstance(dim, numbers.Integral):
                raise InvalidShape(f"dimensions must be integers, got ({rows!r}, {cols!r})")
        rows, cols = int(rows), int(cols)
        if rows < 1 or cols < 1:
            raise InvalidShape(f"dimensions must be >= 1, got ({rows}, {cols})")
        return super().__new__(cls, (rows, cols))

    def __getnewargs__(self):
        return tuple(self)

    @classmethod
    def of(cls, value):
        """Coerce a ``(rows, cols)`` sequence or a Shape into a Shape."""
        if isinstance(value, cls):
            return value
        try:
            rows, cols = value
        except (TypeError, ValueError) as exc:
            raise InvalidShape(f"shape must be a (rows, cols) pair, got {value!r}") from exc
        return cls(rows, cols)

    @property
    def rows(self):
        return self[0]

    @property
    def cols(self):
        return self[1]

    @property
    def size(self):
        return self[0] * self[1]

    def transposed(self):
        return Shape(self[1], self[0])

    def contains(self, i, j):
        return 0 <= i < self[0] and 0 <= j < self[1]

    def check_index(self, i, j):
        """Raise :class:`IndexOutOfBounds` unless ``(i, j)`` lies inside."""
        if not self.contains(i, j):
            raise IndexOutOfBounds((i, j), self)

    def __repr__(self):
        return f"Shape(rows={self[0]}, cols={self[1]})"


def compatible_for_multiply(a, b):
    """Return True iff ``a.cols == b.rows``."""
    return Shape.of(a).cols == Shape.of(b).rows


def output_shape(a, b):
    """Shape of ``a @ b``: ``(a.rows, b.cols)``."""
    return Shape(Shape.of(a).rows, Shape.of(b).cols)


def check_multiply(a, b):
    """Validate a product's shapes and return the output shape.

    Raises
    ------
    ShapeMismatch
        If the contraction dimensions differ.
    """
    a, b = Shape.of(a), Shape.of(b)
    if a.cols != b.rows:
        raise ShapeMismatch(a, b)
    return Shape(a.rows, b.cols)
