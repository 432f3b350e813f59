from .base import Matrix
from .dense import DenseMatrix
from .sparse import SparseMatrix

__all__ = [
    "Matrix",
    "DenseMatrix",
    "SparseMatrix",
]
