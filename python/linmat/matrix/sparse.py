"""Hashed coordinate (dictionary-of-keys) sparse matrix storage.

Entries live in a dict keyed by ``(row, col)``; coordinates that are not
stored are implicitly zero. Stored zeros are legal and simply count
towards ``nnz`` until :meth:`SparseMatrix.eliminate_zeros` drops them.
"""

import operator
from collections.abc import Mapping

import numpy as np

from .. import dtypes
from ..errors import DimensionMismatch, DivideByZero, DuplicateIndex
from ..shape import Shape
from .base import Matrix, format_value
from .dense import DenseMatrix


def _index(value):
    return operator.index(value)


class SparseMatrix(Matrix):
    """Sparse matrix backed by a ``{(row, col): value}`` mapping.

    Parameters
    ----------
    entries : mapping or iterable of ((int, int), number), optional
        Nonzero values keyed by coordinate. An iterable of pairs is
        checked for repeated coordinates.
    shape : tuple[int, int]
        Matrix shape ``(rows, cols)``.
    dtype : numpy.dtype, optional
        Element type. Inferred from the values when omitted (float64 for
        floating or empty input, int64 for integer input).

    Attributes
    ----------
    entries : dict
        Stored values keyed by ``(row, col)``.
    shape : Shape
        Matrix dimensions.
    dtype : numpy.dtype
        Element type.
    nnz : int
        Number of stored entries (explicit zeros included).

    Raises
    ------
    DuplicateIndex
        If the same coordinate is supplied twice.
    IndexOutOfBounds
        If a coordinate lies outside ``shape``.
    InvalidShape
        If a dimension is < 1.

    Examples
    --------
    >>> from linmat import SparseMatrix
    >>> s = SparseMatrix({(0, 1): 2.0, (1, 0): 4.0}, shape=(2, 2))
    >>> (s @ s).toarray().tolist()
    [[8.0, 0.0], [0.0, 8.0]]
    """

    kind = "sparse"

    def __init__(self, entries=None, shape=None, dtype=None):
        if shape is None:
            raise TypeError("SparseMatrix requires a shape")
        shape = Shape.of(shape)
        if entries is None:
            pairs = []
        elif isinstance(entries, Mapping):
            pairs = list(entries.items())
        else:
            pairs = list(entries)

        keys = {}
        values = []
        for idx, value in pairs:
            i, j = idx
            key = (_index(i), _index(j))
            shape.check_index(*key)
            if key in keys:
                raise DuplicateIndex(key)
            keys[key] = len(values)
            values.append(value)

        if dtype is None:
            dtype = dtypes.infer_dtype(values)
        super().__init__(shape, dtype=dtype)
        vals = np.asarray(values, dtype=self.dtype)
        self.entries = dict(zip(keys, vals))

    @classmethod
    def _wrap(cls, entries, shape, dtype):
        # takes ownership of an already validated dict of dtype scalars
        obj = cls.__new__(cls)
        Matrix.__init__(obj, shape, dtype=dtype)
        obj.entries = entries
        return obj

    # ---- construction ----

    @classmethod
    def from_arrays(cls, row, col, data, shape, dtype=None):
        """Construct from coordinate arrays.

        Parameters
        ----------
        row, col : array_like of int
            Coordinates, one per stored value.
        data : array_like
            Values.
        shape : tuple[int, int]
            Matrix shape.
        dtype : numpy.dtype, optional

        Raises
        ------
        DimensionMismatch
            If the three arrays have different lengths.
        DuplicateIndex
            If a coordinate repeats.
        """
        row = np.asarray(row, dtype=np.int64).reshape(-1)
        col = np.asarray(col, dtype=np.int64).reshape(-1)
        data = np.asarray(data)
        if dtype is None:
            dtype = dtypes.infer_dtype(data)
        data = data.reshape(-1)
        if not (row.size == col.size == data.size):
            raise DimensionMismatch(
                f"row, col and data must have equal lengths, got "
                f"{row.size}, {col.size} and {data.size}"
            )
        pairs = zip(zip(row.tolist(), col.tolist()), data)
        return cls(pairs, shape, dtype=dtype)

    @classmethod
    def zeros(cls, shape, dtype=None):
        """Sparse matrix with no stored entries."""
        return cls._wrap({}, Shape.of(shape), dtypes.numeric_dtype(dtype))

    @classmethod
    def eye(cls, n, dtype=None):
        """Identity matrix of order ``n``."""
        shape = Shape(n, n)
        dtype = dtypes.numeric_dtype(dtype)
        one = dtypes.one(dtype)
        return cls._wrap({(i, i): one for i in range(n)}, shape, dtype)

    identity = eye

    @classmethod
    def eye_like(cls, other):
        return cls.eye(other.shape.rows, dtype=other.dtype)

    @classmethod
    def random(cls, shape, density=0.1, low=0.0, high=1.0, dtype=None, seed=None):
        """Random sparse matrix with ``round(density * rows * cols)`` entries.

        Coordinates are drawn without replacement; values are uniform in
        ``[low, high)`` (integers for integer dtypes).
        """
        shape = Shape.of(shape)
        if not 0.0 <= density <= 1.0:
            raise ValueError("density must be within [0, 1]")
        dtype = dtypes.numeric_dtype(dtype)
        rng = np.random.default_rng(seed)
        count = int(round(density * shape.size))
        flat = np.sort(rng.choice(shape.size, size=count, replace=False))
        if dtypes.is_floating(dtype):
            vals = rng.uniform(low, high, size=count).astype(dtype)
        else:
            vals = rng.integers(int(low), int(high), size=count, dtype=dtype)
        rows, cols = np.divmod(flat, shape.cols)
        entries = dict(zip(zip(rows.tolist(), cols.tolist()), vals))
        return cls._wrap(entries, shape, dtype)

    # ---- access ----

    @property
    def nnz(self):
        """Number of stored entries, explicit zeros included."""
        return len(self.entries)

    def at(self, i, j):
        """Value at ``(i, j)``; zero when not stored."""
        self.shape.check_index(i, j)
        return self.entries.get((i, j), dtypes.zero(self.dtype))

    def get(self, i, j):
        """Value at ``(i, j)``, or None outside the shape."""
        if not self.shape.contains(i, j):
            return None
        return self.entries.get((i, j), dtypes.zero(self.dtype))

    def __getitem__(self, key):
        if isinstance(key, tuple) and len(key) == 2:
            return self.at(_index(key[0]), _index(key[1]))
        raise NotImplementedError("only (i, j) indexing is supported")

    def set(self, value, idx):
        """Store ``value`` at ``idx`` in place (a zero is stored explicitly)."""
        i, j = idx
        key = (_index(i), _index(j))
        self.shape.check_index(*key)
        self.entries[key] = dtypes.scalar(value, self.dtype)

    def keys(self):
        """Stored coordinates in row-major order."""
        return sorted(self.entries)

    def items(self):
        """Stored ``((row, col), value)`` pairs in row-major order."""
        return sorted(self.entries.items(), key=lambda kv: kv[0])

    def rows_map(self):
        """Group stored entries by row.

        Returns
        -------
        dict
            ``{row: [(col, value), ...]}`` with each row's list sorted by
            column. Rows with no stored entries are absent.
        """
        grouped = {}
        for (i, j), v in self.entries.items():
            grouped.setdefault(i, []).append((j, v))
        for row in grouped.values():
            row.sort(key=lambda cv: cv[0])
        return grouped

    def toarray(self):
        """Convert to a dense NumPy ``ndarray`` of shape ``(rows, cols)``."""
        out = np.zeros((self.shape.rows, self.shape.cols), dtype=self.dtype)
        if self.entries:
            idx = np.array(list(self.entries.keys()), dtype=np.intp)
            out[idx[:, 0], idx[:, 1]] = np.fromiter(
                self.entries.values(), dtype=self.dtype, count=len(self.entries)
            )
        return out

    def copy(self):
        return SparseMatrix._wrap(dict(self.entries), self.shape, self.dtype)

    def astype(self, dtype):
        """Copy with every stored value converted to ``dtype``."""
        dtype = dtypes.numeric_dtype(dtype)
        return SparseMatrix._wrap(
            {k: dtype.type(v) for k, v in self.entries.items()}, self.shape, dtype
        )

    def todense(self):
        """Dense copy; see :func:`linmat.convert.to_dense`."""
        from ..convert import to_dense

        return to_dense(self)

    def tosparse(self, epsilon=0):
        return self.copy() if epsilon == 0 else self.prune(epsilon)

    def prune(self, eps=0.0):
        """Drop entries with ``abs(value) <= eps``.

        With ``eps == 0`` only exact zeros are dropped. Returns a new
        :class:`SparseMatrix`.
        """
        if eps < 0:
            raise ValueError("eps must be >= 0")
        if eps == 0:
            kept = {k: v for k, v in self.entries.items() if v != 0}
        else:
            kept = {k: v for k, v in self.entries.items() if abs(v) > eps}
        return SparseMatrix._wrap(kept, self.shape, self.dtype)

    def eliminate_zeros(self):
        """Remove explicitly stored zeros. Returns a new :class:`SparseMatrix`."""
        return self.prune(0)

    # ---- element-wise arithmetic ----

    def _check_same_shape(self, other):
        if self.shape != other.shape:
            raise DimensionMismatch(
                f"element-wise operands must have the same shape, got "
                f"{tuple(self.shape)} and {tuple(other.shape)}"
            )

    def _union(self, other, sign):
        self._check_same_shape(other)
        if isinstance(other, DenseMatrix):
            lhs = self.todense()
            return lhs.add(other) if sign > 0 else lhs.sub(other)
        dtype = dtypes.result_dtype(self.dtype, other.dtype)
        out = {k: dtype.type(v) for k, v in self.entries.items()}
        with np.errstate(all="ignore"):
            for k, v in other.entries.items():
                v = dtype.type(v) if sign > 0 else -dtype.type(v)
                prev = out.get(k)
                out[k] = v if prev is None else prev + v
        return SparseMatrix._wrap(out, self.shape, dtype)

    def add(self, other):
        """Element-wise sum.

        Sparse + sparse stays sparse (keys are unioned, values summed on
        collision); sparse + dense returns a :class:`DenseMatrix`.
        """
        return self._union(other, 1)

    def sub(self, other):
        """Element-wise difference; same representation rules as :meth:`add`."""
        return self._union(other, -1)

    def mul(self, other):
        """Element-wise (Hadamard) product; always sparse.

        Only coordinates stored in ``self`` can be nonzero, so the result
        holds those of them where ``other`` is nonzero (sparse) or every
        one of them (dense).
        """
        self._check_same_shape(other)
        dtype = dtypes.result_dtype(self.dtype, other.dtype)
        out = {}
        with np.errstate(all="ignore"):
            if isinstance(other, SparseMatrix):
                for k, v in self.entries.items():
                    w = other.entries.get(k)
                    if w is not None:
                        out[k] = dtype.type(v) * dtype.type(w)
            else:
                buf = other.data
                cols = other.shape.cols
                for (i, j), v in self.entries.items():
                    out[(i, j)] = dtype.type(v) * dtype.type(buf[i * cols + j])
        return SparseMatrix._wrap(out, self.shape, dtype)

    def div(self, other):
        """Element-wise division over the coordinates stored in ``self``.

        Cells absent from ``self`` stay absent. A zero in ``other`` at a
        stored coordinate raises :class:`DivideByZero`.
        """
        self._check_same_shape(other)
        dtype = dtypes.result_dtype(self.dtype, other.dtype)
        keys = list(self.entries)
        num = [self.entries[k] for k in keys]
        den = [other.at(i, j) for i, j in keys]
        if any(d == 0 for d in den):
            raise DivideByZero("divisor is zero at a stored coordinate")
        with np.errstate(all="ignore"):
            vals = dtypes.divide(num, den, dtype) if keys else []
        return SparseMatrix._wrap(dict(zip(keys, vals)), self.shape, dtype)

    def _map_values(self, value, fn):
        dtype = dtypes.scalar_result_dtype(self.dtype, value)
        keys = list(self.entries)
        with np.errstate(all="ignore"):
            vals = fn(np.asarray([self.entries[k] for k in keys], dtype=dtype), dtype)
        return SparseMatrix._wrap(dict(zip(keys, vals)), self.shape, dtype)

    def mul_val(self, value):
        """Scale every stored value; stays sparse."""
        return self._map_values(value, lambda a, dt: np.multiply(a, dt.type(value), dtype=dt))

    def div_val(self, value):
        """Divide every stored value by ``value``; zero raises DivideByZero."""
        if value == 0:
            raise DivideByZero("division of a matrix by zero")
        return self._map_values(value, lambda a, dt: dtypes.divide(a, value, dt))

    def add_val(self, value):
        """Add a scalar to every cell.

        Every implicit zero becomes ``value``, so the result is a
        :class:`DenseMatrix`.
        """
        return self.todense().add_val(value)

    def sub_val(self, value):
        """Subtract a scalar from every cell; returns a :class:`DenseMatrix`."""
        return self.todense().sub_val(value)

    def neg(self):
        with np.errstate(all="ignore"):
            out = {k: -v for k, v in self.entries.items()}
        return SparseMatrix._wrap(out, self.shape, self.dtype)

    # ---- reductions ----

    def _values(self):
        return np.array([v for _, v in self.items()], dtype=self.dtype)

    def sum(self):
        total = dtypes.zero(self.dtype)
        with np.errstate(all="ignore"):
            for _, v in self.items():
                total = total + v
        return total

    def max(self):
        """Largest cell value, implicit zeros included."""
        vals = self._values()
        if self.nnz < self.size:
            vals = np.append(vals, dtypes.zero(self.dtype))
        return vals.max()

    def min(self):
        """Smallest cell value, implicit zeros included."""
        vals = self._values()
        if self.nnz < self.size:
            vals = np.append(vals, dtypes.zero(self.dtype))
        return vals.min()

    def mean(self):
        return float(self.sum()) / self.size

    # ---- structure ----

    def transpose(self):
        """Transposed copy with shape ``(cols, rows)``."""
        out = {(j, i): v for (i, j), v in self.entries.items()}
        return SparseMatrix._wrap(out, self.shape.transposed(), self.dtype)

    def to_string(self, decimals=3):
        return "\n".join(
            f"{i} {j}: {format_value(v, decimals, self.dtype)}" for (i, j), v in self.items()
        )
