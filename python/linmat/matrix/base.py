"""Base class shared by dense and sparse matrices.

The two concrete representations are kept separate so each multiply
kernel keeps its own performance characteristics; this class carries the
shape/dtype bookkeeping, operator wiring and the helpers that only need
a dense view of the data.
"""

import numbers

import numpy as np

from ..dtypes import numeric_dtype
from ..shape import Shape


class Matrix:
    """Abstract base class for 2D matrices.

    Parameters
    ----------
    shape : tuple[int, int]
        Matrix shape. Stored as a :class:`~linmat.shape.Shape`.
    dtype : numpy.dtype, optional
        Element type, one of the types in :mod:`linmat.dtypes`.

    Attributes
    ----------
    shape : Shape
        Matrix dimensions.
    ndim : int
        Always 2.
    dtype : numpy.dtype
        Element type.
    kind : str
        ``"dense"`` or ``"sparse"``.

    Raises
    ------
    InvalidShape
        If a dimension is smaller than 1.
    TypeError
        If ``dtype`` is not a supported element type.
    """

    kind = None
    ndim = 2
    # numpy scalars on the left defer to the reflected operators below
    __array_ufunc__ = None

    def __init__(self, shape, dtype=None):
        self.shape = Shape.of(shape)
        self.dtype = numeric_dtype(dtype)

    @property
    def nrows(self):
        return self.shape.rows

    @property
    def ncols(self):
        return self.shape.cols

    @property
    def size(self):
        """Number of cells, ``rows * cols``."""
        return self.shape.size

    @property
    def nnz(self):
        raise NotImplementedError

    def sparsity(self):
        """Fraction of cells that hold zero (implicitly or explicitly)."""
        return 1.0 - self.nnz / self.size

    def toarray(self):
        """Return a dense numpy.ndarray with the same shape and dtype."""
        raise NotImplementedError

    def __array__(self, dtype=None, copy=None):
        arr = self.toarray()
        if dtype is not None:
            arr = arr.astype(dtype, copy=False)
        return arr

    @property
    def T(self):
        """Transpose as a new matrix of the same representation."""
        return self.transpose()

    # ---- products ----

    def matmul(self, other, num_threads=None):
        """Matrix product ``self @ other``; see :func:`linmat.linalg.matmul`."""
        from ..linalg import matmul

        return matmul(self, other, num_threads=num_threads)

    def mm(self, other, num_threads=None):
        """Shorthand for :meth:`matmul`."""
        return self.matmul(other, num_threads=num_threads)

    def __matmul__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.matmul(other)

    # ---- element-wise operators ----

    def __add__(self, other):
        if isinstance(other, Matrix):
            return self.add(other)
        if isinstance(other, numbers.Number):
            return self.add_val(other)
        return NotImplemented

    def __radd__(self, other):
        if isinstance(other, numbers.Number):
            return self.add_val(other)
        return NotImplemented

    def __sub__(self, other):
        if isinstance(other, Matrix):
            return self.sub(other)
        if isinstance(other, numbers.Number):
            return self.sub_val(other)
        return NotImplemented

    def __rsub__(self, other):
        if isinstance(other, numbers.Number):
            return self.neg().add_val(other)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, Matrix):
            return self.mul(other)
        if isinstance(other, numbers.Number):
            return self.mul_val(other)
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, numbers.Number):
            return self.mul_val(other)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, Matrix):
            return self.div(other)
        if isinstance(other, numbers.Number):
            return self.div_val(other)
        return NotImplemented

    def __neg__(self):
        return self.neg()

    # ---- comparison ----

    def equals(self, other):
        """Exact element-wise equality with another matrix of the same shape.

        Representations may differ: a sparse matrix equals its dense
        counterpart, and stored zeros equal absent entries.
        """
        if not isinstance(other, Matrix) or self.shape != other.shape:
            return False
        return bool(np.array_equal(self.toarray(), other.toarray()))

    def allclose(self, other, rtol=1e-7, atol=0.0):
        """Element-wise closeness, as :func:`numpy.allclose`."""
        if not isinstance(other, Matrix) or self.shape != other.shape:
            return False
        return bool(np.allclose(self.toarray(), other.toarray(), rtol=rtol, atol=atol))

    # ---- display ----

    def to_string(self, decimals=3):
        raise NotImplementedError

    def print(self, decimals=3):
        """Print :meth:`to_string` with ``decimals`` digits after the point."""
        print(self.to_string(decimals))

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        return (
            f"{type(self).__name__}(shape=({self.shape.rows}, {self.shape.cols}), "
            f"dtype={self.dtype}, nnz={self.nnz})"
        )


def format_value(value, decimals, dtype):
    if np.issubdtype(dtype, np.integer):
        return str(int(value))
    return f"{float(value):.{int(decimals)}f}"
