"""Sparse x sparse matrix multiplication.

Both operands are laid out as row-major coordinate arrays; the right
operand additionally gets a row pointer so the entries of any row ``k``
form one contiguous slice. Work is partitioned by left-operand rows,
balanced by the number of multiply-adds each row costs. A chunk expands
all of its ``(i, k, a) x (k, j, b)`` pairs at once and accumulates them
with :func:`numpy.add.at`, so the chunk body is numpy array code and
chunks overlap on the thread pool.

Every output row is owned by exactly one chunk and the pairs of a row
are generated in increasing ``k``; ``numpy.add.at`` applies them in that
order, so each cell is summed from zero in increasing ``k`` and the
result does not depend on the worker count.
"""

import logging

import numpy as np

from .. import dtypes
from .._scheduler import (
    chunk_count,
    merge_partials,
    partition_weighted,
    resolve_workers,
    run_chunks,
)
from ..matrix.sparse import SparseMatrix
from ..shape import check_multiply

logger = logging.getLogger(__name__)


def _coo_arrays(matrix, dtype):
    items = matrix.items()
    n = len(items)
    row = np.fromiter((key[0] for key, _ in items), dtype=np.int64, count=n)
    col = np.fromiter((key[1] for key, _ in items), dtype=np.int64, count=n)
    val = np.fromiter((v for _, v in items), dtype=dtype, count=n)
    return row, col, val


def matmul_sparse(lhs, rhs, num_threads=None, prune=False):
    """Product of two sparse matrices.

    Parameters
    ----------
    lhs : SparseMatrix
        Left operand, shape ``(M, K)``.
    rhs : SparseMatrix
        Right operand, shape ``(K, N)``.
    num_threads : int, optional
        Worker count for this call; defaults to :func:`linmat.get_num_threads`.
    prune : bool, optional
        Drop output entries that accumulate to exactly zero. Off by
        default; absent and stored-zero entries read the same either way.

    Returns
    -------
    SparseMatrix
        New matrix of shape ``(M, N)``. Only coordinates reachable through
        a stored pair ``lhs[i, k]``, ``rhs[k, j]`` are present.

    Raises
    ------
    ShapeMismatch
        If ``lhs.cols != rhs.rows``. Nothing is dispatched.
    """
    out_shape = check_multiply(lhs.shape, rhs.shape)
    dtype = dtypes.result_dtype(lhs.dtype, rhs.dtype)
    workers = resolve_workers(num_threads)
    ncols = out_shape.cols

    lhs_row, lhs_col, lhs_val = _coo_arrays(lhs, dtype)
    rhs_row, rhs_col, rhs_val = _coo_arrays(rhs, dtype)
    rhs_counts = np.bincount(rhs_row, minlength=rhs.shape.rows)
    rhs_ptr = np.concatenate(([0], np.cumsum(rhs_counts)))

    pair_counts = rhs_counts[lhs_col]
    order, first = np.unique(lhs_row, return_index=True)
    weights = np.add.reduceat(pair_counts, first).tolist() if first.size else []
    bounds = dict(zip(order.tolist(), zip(first.tolist(), first[1:].tolist() + [lhs_row.size])))
    groups = partition_weighted(order.tolist(), weights, chunk_count(order.size, workers))
    chunks = [(bounds[g[0]][0], bounds[g[-1]][1]) for g in groups]
    logger.debug(
        "sparse matmul %dx%d (nnz=%d) @ %dx%d (nnz=%d): %d multiply-adds, %d chunks, %d workers",
        lhs.shape.rows, lhs.shape.cols, lhs.nnz, rhs.shape.rows, rhs.shape.cols, rhs.nnz,
        int(pair_counts.sum()), len(chunks), workers,
    )

    def work(span):
        lo, hi = span
        counts = pair_counts[lo:hi]
        total = int(counts.sum())
        if total == 0:
            return {}
        k = lhs_col[lo:hi]
        # position of every pair's rhs entry: row k's slice, walked in column order
        ends = np.cumsum(counts)
        pos = np.repeat(rhs_ptr[k] - (ends - counts), counts) + np.arange(total)
        keys = np.repeat(lhs_row[lo:hi], counts) * ncols + rhs_col[pos]
        with np.errstate(all="ignore"):
            products = np.repeat(lhs_val[lo:hi], counts) * rhs_val[pos]
        cells, slot = np.unique(keys, return_inverse=True)
        acc = np.zeros(cells.size, dtype=dtype)
        with np.errstate(all="ignore"):
            np.add.at(acc, slot.reshape(-1), products)
        rows, cols = np.divmod(cells, ncols)
        return dict(zip(zip(rows.tolist(), cols.tolist()), acc))

    entries = merge_partials(run_chunks(work, chunks, workers))
    if prune:
        entries = {key: v for key, v in entries.items() if v != 0}
    return SparseMatrix._wrap(entries, out_shape, dtype)
