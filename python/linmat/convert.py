"""Conversions between dense and sparse storage.

Both directions preserve shape and dtype. Converting sparse to dense
materializes every implicit zero; converting dense to sparse keeps only
the cells that pass the ``epsilon`` test, so any sparsity structure that
was stored as explicit zeros is lost on a round trip.
"""

import numpy as np

from .matrix.dense import DenseMatrix
from .matrix.sparse import SparseMatrix


def to_dense(s):
    """Dense copy of ``s``.

    Parameters
    ----------
    s : SparseMatrix or DenseMatrix
        A dense input is copied.

    Returns
    -------
    DenseMatrix
        Same shape and dtype; cells without a stored entry are zero.
    """
    if isinstance(s, DenseMatrix):
        return s.copy()
    if not isinstance(s, SparseMatrix):
        raise TypeError(f"expected a linmat matrix, got {type(s).__name__}")
    rows, cols = s.shape
    buf = np.zeros(rows * cols, dtype=s.dtype)
    if s.entries:
        idx = np.array(list(s.entries.keys()), dtype=np.intp)
        buf[idx[:, 0] * cols + idx[:, 1]] = np.fromiter(
            s.entries.values(), dtype=s.dtype, count=len(s.entries)
        )
    return DenseMatrix._wrap(buf, s.shape)


def to_sparse(d, epsilon=0):
    """Sparse copy of ``d``.

    Parameters
    ----------
    d : DenseMatrix or SparseMatrix
        A sparse input is copied, pruned with ``epsilon`` when it is positive.
    epsilon : number, optional
        With the default ``0`` every cell that is not exactly zero is kept
        (NaN included). A positive value keeps cells with
        ``abs(value) > epsilon``.

    Returns
    -------
    SparseMatrix

    Raises
    ------
    ValueError
        If ``epsilon`` is negative.
    """
    if epsilon < 0:
        raise ValueError("epsilon must be >= 0")
    if isinstance(d, SparseMatrix):
        return d.tosparse(epsilon)
    if not isinstance(d, DenseMatrix):
        raise TypeError(f"expected a linmat matrix, got {type(d).__name__}")
    if epsilon == 0:
        mask = d.data != 0
    else:
        mask = np.abs(d.data) > epsilon
    flat = np.flatnonzero(mask)
    rows, cols = np.divmod(flat, d.shape.cols)
    entries = dict(zip(zip(rows.tolist(), cols.tolist()), d.data[flat]))
    return SparseMatrix._wrap(entries, d.shape, d.dtype)
