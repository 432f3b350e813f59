"""Exceptions raised by linmat.

Every error is a synchronous input-validation failure: retrying with the
same operands fails identically, and the operands stay valid afterwards.
"""


class MatrixError(ValueError):
    """Base class for all matrix errors."""


class InvalidShape(MatrixError):
    """A dimension is smaller than 1, or a buffer does not fit its shape."""


class ShapeMismatch(MatrixError):
    """Contraction dimensions of a product disagree (``lhs.cols != rhs.rows``)."""

    def __init__(self, lhs, rhs):
        self.lhs = tuple(lhs)
        self.rhs = tuple(rhs)
        super().__init__(
            f"cannot multiply {self.lhs[0]}x{self.lhs[1]} by {self.rhs[0]}x{self.rhs[1]}: "
            "operands must be M x N @ N x P"
        )


class DimensionMismatch(MatrixError):
    """Element-wise operands (or construction arrays) have different sizes."""


class DuplicateIndex(MatrixError):
    """A sparse matrix received two values for the same coordinate."""

    def __init__(self, index):
        self.index = tuple(index)
        super().__init__(f"duplicate sparse index {self.index}")


class IndexOutOfBounds(MatrixError, IndexError):
    """A coordinate lies outside the matrix shape."""

    def __init__(self, index, shape):
        self.index = tuple(index)
        self.shape = tuple(shape)
        super().__init__(f"index {self.index} is out of bounds for shape {self.shape}")


class DivideByZero(MatrixError, ZeroDivisionError):
    """Division by a zero scalar or by a matrix holding a zero."""


class SingularMatrix(MatrixError):
    """The matrix has no inverse."""
