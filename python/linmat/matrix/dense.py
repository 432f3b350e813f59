"""Dense row-major matrix storage."""

import numpy as np

from .. import dtypes
from ..errors import DimensionMismatch, DivideByZero, InvalidShape, SingularMatrix
from ..shape import Shape
from .base import Matrix, format_value


class DenseMatrix(Matrix):
    """Dense matrix stored as a flat row-major buffer.

    Parameters
    ----------
    data : array_like
        ``rows * cols`` values, either flat (row-major) or already 2D.
    shape : tuple[int, int]
        Matrix shape ``(rows, cols)``.
    dtype : numpy.dtype, optional
        Element type. Inferred from ``data`` when omitted (float64 for
        floating input, int64 for integer input).

    Attributes
    ----------
    data : numpy.ndarray
        1D buffer of length ``rows * cols`` in row-major order.
    shape : Shape
        Matrix dimensions.
    dtype : numpy.dtype
        Element type.

    Raises
    ------
    InvalidShape
        If a dimension is < 1, the buffer length differs from
        ``rows * cols``, or 2D input has a shape other than ``shape``.

    Examples
    --------
    >>> from linmat import DenseMatrix
    >>> a = DenseMatrix([1.0, 2.0, 3.0, 4.0], (2, 2))
    >>> b = DenseMatrix([5.0, 6.0, 7.0, 8.0], (2, 2))
    >>> (a @ b).tolist()
    [[19.0, 22.0], [43.0, 50.0]]
    """

    kind = "dense"

    def __init__(self, data, shape, dtype=None):
        if dtype is None:
            dtype = dtypes.infer_dtype(data)
        super().__init__(shape, dtype=dtype)
        arr = np.array(data, dtype=self.dtype)
        if arr.ndim > 1 and arr.shape != tuple(self.shape):
            raise InvalidShape(
                f"array of shape {arr.shape} does not match shape "
                f"({self.shape.rows}, {self.shape.cols})"
            )
        buf = arr.reshape(-1)
        if buf.size != self.shape.size:
            raise InvalidShape(
                f"buffer of length {buf.size} does not fit shape "
                f"({self.shape.rows}, {self.shape.cols})"
            )
        self.data = buf

    @classmethod
    def _wrap(cls, buf, shape):
        # takes ownership of an already validated, contiguous 1D buffer
        obj = cls.__new__(cls)
        Matrix.__init__(obj, shape, dtype=buf.dtype)
        obj.data = buf
        return obj

    # ---- construction ----

    @classmethod
    def from_array(cls, arr, dtype=None):
        """Construct from a 2D array-like; the shape is taken from it."""
        arr = np.asarray(arr)
        if arr.ndim != 2:
            raise InvalidShape(f"expected a 2D array, got ndim={arr.ndim}")
        return cls(arr, arr.shape, dtype=dtype)

    @classmethod
    def full(cls, value, shape, dtype=None):
        """Matrix of the given shape with every cell set to ``value``."""
        shape = Shape.of(shape)
        if dtype is None:
            dtype = dtypes.infer_dtype([value])
        dtype = dtypes.numeric_dtype(dtype)
        return cls._wrap(np.full(shape.size, value, dtype=dtype), shape)

    init = full

    @classmethod
    def zeros(cls, shape, dtype=None):
        shape = Shape.of(shape)
        return cls._wrap(np.zeros(shape.size, dtype=dtypes.numeric_dtype(dtype)), shape)

    @classmethod
    def ones(cls, shape, dtype=None):
        shape = Shape.of(shape)
        return cls._wrap(np.ones(shape.size, dtype=dtypes.numeric_dtype(dtype)), shape)

    @classmethod
    def eye(cls, n, dtype=None):
        """Identity matrix of order ``n``."""
        shape = Shape(n, n)
        return cls._wrap(np.eye(n, dtype=dtypes.numeric_dtype(dtype)).reshape(-1), shape)

    identity = eye

    @classmethod
    def zeros_like(cls, other):
        return cls.zeros(other.shape, dtype=other.dtype)

    @classmethod
    def ones_like(cls, other):
        return cls.ones(other.shape, dtype=other.dtype)

    @classmethod
    def eye_like(cls, other):
        """Identity with as many rows as ``other``."""
        return cls.eye(other.shape.rows, dtype=other.dtype)

    @classmethod
    def random(cls, shape, low=0.0, high=1.0, dtype=None, seed=None):
        """Uniformly random matrix.

        Floating types draw from ``[low, high)``; integer types draw
        integers from ``[low, high)``.

        Parameters
        ----------
        shape : tuple[int, int]
        low, high : number, optional
        dtype : numpy.dtype, optional
            Defaults to float64.
        seed : int or numpy.random.Generator, optional
        """
        shape = Shape.of(shape)
        dtype = dtypes.numeric_dtype(dtype)
        rng = np.random.default_rng(seed)
        if dtypes.is_floating(dtype):
            buf = rng.uniform(low, high, size=shape.size).astype(dtype)
        else:
            buf = rng.integers(int(low), int(high), size=shape.size, dtype=dtype)
        return cls._wrap(buf, shape)

    # ---- access ----

    @property
    def nnz(self):
        """Number of nonzero cells."""
        return int(np.count_nonzero(self.data))

    def at(self, i, j):
        """Value at ``(i, j)``; raises IndexOutOfBounds outside the shape."""
        self.shape.check_index(i, j)
        return self.data[i * self.shape.cols + j]

    def get(self, i, j):
        """Value at ``(i, j)``, or None outside the shape."""
        if not self.shape.contains(i, j):
            return None
        return self.data[i * self.shape.cols + j]

    def set(self, value, idx):
        """Overwrite a single cell in place."""
        i, j = idx
        self.shape.check_index(i, j)
        self.data[i * self.shape.cols + j] = value

    def row(self, i):
        """Copy of row ``i`` as a 1D array."""
        self.shape.check_index(i, 0)
        cols = self.shape.cols
        return self.data[i * cols:(i + 1) * cols].copy()

    def col(self, j):
        """Copy of column ``j`` as a 1D array."""
        self.shape.check_index(0, j)
        return self.data[j::self.shape.cols].copy()

    def __getitem__(self, key):
        """Read-only indexing.

        Supported forms
        ---------------
        (i, j) : int, int
            Scalar at ``(i, j)``.
        i : int
            Row ``i`` as a 1D array.
        """
        if isinstance(key, tuple) and len(key) == 2:
            return self.at(int(key[0]), int(key[1]))
        if isinstance(key, (int, np.integer)):
            return self.row(int(key))
        raise NotImplementedError("only (i, j) and row indexing are supported")

    def view2d(self):
        """2D view over the buffer (no copy)."""
        return self.data.reshape(self.shape.rows, self.shape.cols)

    def toarray(self):
        """Return a 2D numpy.ndarray copy."""
        return self.view2d().copy()

    def tolist(self):
        return self.view2d().tolist()

    def copy(self):
        return DenseMatrix._wrap(self.data.copy(), self.shape)

    def astype(self, dtype):
        """Copy converted to ``dtype``."""
        dtype = dtypes.numeric_dtype(dtype)
        return DenseMatrix._wrap(self.data.astype(dtype, copy=True), self.shape)

    def tosparse(self, epsilon=0):
        """Sparse copy; see :func:`linmat.convert.to_sparse`."""
        from ..convert import to_sparse

        return to_sparse(self, epsilon=epsilon)

    def todense(self):
        return self.copy()

    # ---- element-wise arithmetic ----

    def _operand(self, other):
        if self.shape != other.shape:
            raise DimensionMismatch(
                f"element-wise operands must have the same shape, got "
                f"{tuple(self.shape)} and {tuple(other.shape)}"
            )
        if isinstance(other, DenseMatrix):
            return other.data
        return other.toarray().reshape(-1)

    def _binary(self, other, ufunc):
        rhs = self._operand(other)
        dtype = dtypes.result_dtype(self.dtype, other.dtype)
        with np.errstate(all="ignore"):
            out = ufunc(self.data, rhs, dtype=dtype)
        return DenseMatrix._wrap(out, self.shape)

    def add(self, other):
        """Element-wise sum with a matrix of the same shape."""
        return self._binary(other, np.add)

    def sub(self, other):
        """Element-wise difference with a matrix of the same shape."""
        return self._binary(other, np.subtract)

    def mul(self, other):
        """Element-wise (Hadamard) product with a matrix of the same shape."""
        return self._binary(other, np.multiply)

    def div(self, other):
        """Element-wise division by a matrix of the same shape.

        Raises
        ------
        DimensionMismatch
            If the shapes differ.
        DivideByZero
            If ``other`` holds a zero anywhere.
        """
        rhs = self._operand(other)
        if not np.all(rhs):
            raise DivideByZero("divisor matrix contains a zero")
        dtype = dtypes.result_dtype(self.dtype, other.dtype)
        with np.errstate(all="ignore"):
            out = dtypes.divide(self.data, rhs, dtype)
        return DenseMatrix._wrap(out, self.shape)

    def _scalar(self, value, ufunc):
        dtype = dtypes.scalar_result_dtype(self.dtype, value)
        with np.errstate(all="ignore"):
            out = ufunc(self.data.astype(dtype, copy=False), dtype.type(value), dtype=dtype)
        return DenseMatrix._wrap(out, self.shape)

    def add_val(self, value):
        return self._scalar(value, np.add)

    def sub_val(self, value):
        return self._scalar(value, np.subtract)

    def mul_val(self, value):
        return self._scalar(value, np.multiply)

    def div_val(self, value):
        """Divide every cell by ``value``; zero raises DivideByZero."""
        if value == 0:
            raise DivideByZero("division of a matrix by zero")
        dtype = dtypes.scalar_result_dtype(self.dtype, value)
        with np.errstate(all="ignore"):
            out = dtypes.divide(self.data, value, dtype)
        return DenseMatrix._wrap(out, self.shape)

    def neg(self):
        with np.errstate(all="ignore"):
            return DenseMatrix._wrap(np.negative(self.data), self.shape)

    # ---- reductions ----

    def sum(self, axis=None):
        """Sum of all cells, or per column (``axis=0``) / per row (``axis=1``).

        The per-axis forms return a 1D array; ``sum(axis=1)[i]`` is the
        total of row ``i``.
        """
        axis = _check_axis(axis)
        if axis is None:
            return self.data.sum(dtype=self.dtype)
        return self.view2d().sum(axis=axis, dtype=self.dtype)

    def prod(self, axis=None):
        """Product of all cells, or per column / row; see :meth:`sum`."""
        axis = _check_axis(axis)
        if axis is None:
            return self.data.prod(dtype=self.dtype)
        return self.view2d().prod(axis=axis, dtype=self.dtype)

    def max(self):
        return self.data.max()

    def min(self):
        return self.data.min()

    def mean(self):
        return float(self.data.mean(dtype=np.float64))

    def median(self):
        """Median of all cells as a float (mean of the middle pair for even sizes)."""
        return float(np.median(self.data.astype(np.float64, copy=False)))

    def cumsum(self, axis=None):
        """Running sums.

        With ``axis=None`` the cells are accumulated in row-major order
        and the result has shape ``(1, size)``; its last cell is the
        total. With ``axis=0`` or ``1`` the result keeps this shape.
        """
        return self._accumulate(np.cumsum, axis)

    def cumprod(self, axis=None):
        """Running products; same layout rules as :meth:`cumsum`."""
        return self._accumulate(np.cumprod, axis)

    def _accumulate(self, fn, axis):
        axis = _check_axis(axis)
        if axis is None:
            return DenseMatrix._wrap(fn(self.data, dtype=self.dtype), Shape(1, self.size))
        out = fn(self.view2d(), axis=axis, dtype=self.dtype)
        return DenseMatrix._wrap(np.ascontiguousarray(out).reshape(-1), self.shape)

    # ---- predicates ----

    def _mask(self, pred):
        mask = np.asarray(pred(self.data), dtype=bool)
        if mask.shape != self.data.shape:
            raise ValueError("predicate must return one boolean per cell")
        return mask

    def any(self, pred):
        """True if ``pred`` holds for at least one cell.

        ``pred`` receives the 1D buffer and returns a boolean mask, e.g.
        ``lambda x: x >= 50``. Combine conditions with ``&`` and ``|``.
        """
        return bool(self._mask(pred).any())

    def all(self, pred):
        """True if ``pred`` holds for every cell."""
        return bool(self._mask(pred).all())

    def count_where(self, pred):
        """Number of cells where ``pred`` holds."""
        return int(np.count_nonzero(self._mask(pred)))

    def sum_where(self, pred):
        """Sum of the cells where ``pred`` holds (zero when none do)."""
        return self.data[self._mask(pred)].sum(dtype=self.dtype)

    def find(self, pred):
        """First ``(i, j)`` in row-major order where ``pred`` holds, or None."""
        hits = np.flatnonzero(self._mask(pred))
        if hits.size == 0:
            return None
        i, j = divmod(int(hits[0]), self.shape.cols)
        return (i, j)

    def find_all(self, pred):
        """Every ``(i, j)`` where ``pred`` holds, in row-major order."""
        rows, cols = np.divmod(np.flatnonzero(self._mask(pred)), self.shape.cols)
        return list(zip(rows.tolist(), cols.tolist()))

    def set_where(self, pred, value):
        """Overwrite every cell where ``pred`` holds with ``value``, in place."""
        self.data[self._mask(pred)] = value

    # ---- structure ----

    def transpose(self):
        """Transposed copy with shape ``(cols, rows)``."""
        buf = np.ascontiguousarray(self.view2d().T).reshape(-1)
        return DenseMatrix._wrap(buf, self.shape.transposed())

    def reshape(self, rows, cols):
        """Copy with the same row-major buffer laid out as ``(rows, cols)``.

        Raises
        ------
        InvalidShape
            If ``rows * cols`` differs from :attr:`size`.
        """
        shape = Shape(rows, cols)
        if shape.size != self.size:
            raise InvalidShape(
                f"cannot reshape {self.shape.rows}x{self.shape.cols} into {rows}x{cols}"
            )
        return DenseMatrix._wrap(self.data.copy(), shape)

    def get_sub_matrix(self, start, size):
        """Copy of the block of ``size`` cells whose top-left corner is ``start``.

        Parameters
        ----------
        start : tuple[int, int]
            ``(row, col)`` of the top-left cell.
        size : tuple[int, int]
            ``(rows, cols)`` of the block.

        Raises
        ------
        IndexOutOfBounds
            If any part of the block lies outside the matrix.
        """
        i, j = start
        size = Shape.of(size)
        self.shape.check_index(i, j)
        self.shape.check_index(i + size.rows - 1, j + size.cols - 1)
        block = self.view2d()[i:i + size.rows, j:j + size.cols]
        return DenseMatrix._wrap(np.ascontiguousarray(block).reshape(-1), size)

    def concat(self, other, axis=0):
        """Stack ``other`` below (``axis=0``) or to the right (``axis=1``).

        Raises
        ------
        DimensionMismatch
            If the matrices disagree on the other dimension.
        """
        axis = _check_axis(axis)
        if axis is None:
            raise ValueError("axis must be 0 or 1")
        keep = 1 - axis
        if self.shape[keep] != other.shape[keep]:
            raise DimensionMismatch(
                f"cannot concatenate {tuple(self.shape)} and {tuple(other.shape)} along axis {axis}"
            )
        dtype = dtypes.result_dtype(self.dtype, other.dtype)
        out = np.concatenate(
            [self.view2d().astype(dtype, copy=False), other.toarray().astype(dtype, copy=False)],
            axis=axis,
        )
        return DenseMatrix._wrap(out.reshape(-1), Shape(*out.shape))

    def extend(self, other, axis=0):
        """In-place :meth:`concat`; the element type may widen."""
        out = self.concat(other, axis=axis)
        self.data = out.data
        self.shape = out.shape
        self.dtype = out.dtype

    # ---- linear algebra ----

    def _check_square(self):
        if self.shape.rows != self.shape.cols:
            raise DimensionMismatch(
                f"expected a square matrix, got {self.shape.rows}x{self.shape.cols}"
            )

    def determinant(self):
        """Determinant of a square matrix.

        Integer matrices are handled exactly (fraction-free elimination)
        and return a Python ``int``; floating matrices use
        :func:`numpy.linalg.det` and return a scalar of their dtype.

        Raises
        ------
        DimensionMismatch
            If the matrix is not square.
        """
        self._check_square()
        if dtypes.is_floating(self.dtype):
            return self.dtype.type(np.linalg.det(self.view2d()))
        return _bareiss_det(self.view2d().tolist())

    det = determinant

    def inverse(self):
        """Inverse of a square matrix.

        Integer matrices are inverted in float64; float32 stays float32.

        Raises
        ------
        DimensionMismatch
            If the matrix is not square.
        SingularMatrix
            If the matrix has no inverse.
        """
        self._check_square()
        dtype = self.dtype if dtypes.is_floating(self.dtype) else dtypes.float64
        try:
            out = np.linalg.inv(self.view2d().astype(dtype, copy=False))
        except np.linalg.LinAlgError as exc:
            raise SingularMatrix("matrix is singular") from exc
        return DenseMatrix._wrap(out.astype(dtype, copy=False).reshape(-1), self.shape)

    inv = inverse

    def to_string(self, decimals=3):
        lines = []
        for r in self.view2d():
            lines.append(" ".join(format_value(v, decimals, self.dtype) for v in r))
        return "\n".join(lines)


def _check_axis(axis):
    if axis is None:
        return None
    if axis not in (0, 1):
        raise ValueError("axis must be None, 0, or 1")
    return int(axis)


def _bareiss_det(rows):
    m = [list(map(int, r)) for r in rows]
    n = len(m)
    sign = 1
    prev = 1
    for k in range(n - 1):
        if m[k][k] == 0:
            pivot = next((r for r in range(k + 1, n) if m[r][k] != 0), None)
            if pivot is None:
                return 0
            m[k], m[pivot] = m[pivot], m[k]
            sign = -sign
        for i in range(k + 1, n):
            for j in range(k + 1, n):
                # exact: every intermediate is a minor of the input
                m[i][j] = (m[i][j] * m[k][k] - m[i][k] * m[k][j]) // prev
        prev = m[k][k]
    return sign * m[n - 1][n - 1]
