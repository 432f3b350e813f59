"""Dense x dense matrix multiplication.

The output is split into contiguous row blocks, one per chunk. Each
chunk accumulates its block as a sequence of rank-1 updates
``out[rows] += lhs[rows, k] * rhs[k, :]`` for ``k = 0 .. K-1``. Every
output cell therefore starts at zero and receives its contributions in
increasing ``k`` no matter how the rows were partitioned, which makes the
result bit-identical for any worker count.
"""

import logging

import numpy as np

from .. import dtypes
from .._scheduler import chunk_count, partition_range, resolve_workers, run_chunks
from ..matrix.dense import DenseMatrix
from ..shape import check_multiply

logger = logging.getLogger(__name__)


def _accumulate_rows(a_rows, b, out_rows):
    # a_rows: (r, K), b: (K, N), out_rows: (r, N) zero-initialised view
    tmp = np.empty_like(out_rows)
    for k in range(a_rows.shape[1]):
        np.multiply(a_rows[:, k:k + 1], b[k], out=tmp)
        np.add(out_rows, tmp, out=out_rows)


def matmul_dense(lhs, rhs, num_threads=None):
    """Product of two dense matrices.

    Parameters
    ----------
    lhs : DenseMatrix
        Left operand, shape ``(M, K)``.
    rhs : DenseMatrix
        Right operand, shape ``(K, N)``.
    num_threads : int, optional
        Worker count for this call; defaults to :func:`linmat.get_num_threads`.

    Returns
    -------
    DenseMatrix
        New matrix of shape ``(M, N)`` and dtype
        ``result_dtype(lhs.dtype, rhs.dtype)``.

    Raises
    ------
    ShapeMismatch
        If ``lhs.cols != rhs.rows``. Nothing is allocated or dispatched.
    """
    out_shape = check_multiply(lhs.shape, rhs.shape)
    dtype = dtypes.result_dtype(lhs.dtype, rhs.dtype)
    workers = resolve_workers(num_threads)

    m, k = lhs.shape
    n = rhs.shape.cols
    a = lhs.data.reshape(m, k).astype(dtype, copy=False)
    b = rhs.data.reshape(k, n).astype(dtype, copy=False)
    out = np.zeros((m, n), dtype=dtype)

    chunks = partition_range(m, chunk_count(m, workers))
    logger.debug(
        "dense matmul %dx%d @ %dx%d (%s): %d chunks, %d workers",
        m, k, k, n, dtype, len(chunks), workers,
    )

    def work(bounds):
        start, stop = bounds
        # errstate is per-thread, so it is entered inside the worker
        with np.errstate(all="ignore"):
            _accumulate_rows(a[start:stop], b, out[start:stop])

    run_chunks(work, chunks, workers)
    return DenseMatrix._wrap(out.reshape(-1), out_shape)
