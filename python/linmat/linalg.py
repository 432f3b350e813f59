"""Matrix product front door.

Dispatch rule: sparse @ sparse stays sparse, any dense operand makes the
product dense. A sparse operand in a mixed product is converted to dense
first, so its sparsity structure is not exploited; convert the dense side
with :func:`linmat.convert.to_sparse` beforehand if a sparse product is
wanted instead.
"""

import logging

from .convert import to_dense
from .kernels.dense import matmul_dense
from .kernels.sparse import matmul_sparse
from .matrix.dense import DenseMatrix
from .matrix.sparse import SparseMatrix
from .shape import check_multiply

logger = logging.getLogger(__name__)


def _is_sparse(x) -> bool:
    return isinstance(x, SparseMatrix)


def matmul(x, y, num_threads=None):
    """Matrix product ``x @ y``.

    Parameters
    ----------
    x, y : DenseMatrix or SparseMatrix
        Operands with ``x.shape[1] == y.shape[0]``.
    num_threads : int, optional
        Worker count for this call.

    Returns
    -------
    SparseMatrix
        When both operands are sparse.
    DenseMatrix
        When at least one operand is dense. The sparse operand, if any, is
        densified with :func:`linmat.convert.to_dense` and the dense kernel
        does the work.

    Raises
    ------
    ShapeMismatch
        If the inner dimensions differ; checked before any conversion.
    TypeError
        If an operand is not a linmat matrix.
    """
    for operand in (x, y):
        if not isinstance(operand, (DenseMatrix, SparseMatrix)):
            raise TypeError(f"matmul expects linmat matrices, got {type(operand).__name__}")
    check_multiply(x.shape, y.shape)

    if _is_sparse(x) and _is_sparse(y):
        return matmul_sparse(x, y, num_threads=num_threads)

    if _is_sparse(x) or _is_sparse(y):
        logger.debug(
            "mixed product %s @ %s: densifying the sparse operand",
            x.kind, y.kind,
        )
        x = to_dense(x) if _is_sparse(x) else x
        y = to_dense(y) if _is_sparse(y) else y
    return matmul_dense(x, y, num_threads=num_threads)


mm = matmul
