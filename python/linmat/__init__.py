import logging

from ._runtime import get_num_threads, reset_num_threads, set_num_threads
from .convert import to_dense, to_sparse
from .errors import (
    DimensionMismatch,
    DivideByZero,
    DuplicateIndex,
    IndexOutOfBounds,
    InvalidShape,
    MatrixError,
    ShapeMismatch,
    SingularMatrix,
)
from .kernels import matmul_dense, matmul_sparse
from .linalg import matmul
from .matrix import DenseMatrix, Matrix, SparseMatrix
from .shape import Shape, check_multiply, compatible_for_multiply, output_shape

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "set_num_threads",
    "get_num_threads",
    "reset_num_threads",
    "Shape",
    "compatible_for_multiply",
    "output_shape",
    "check_multiply",
    "Matrix",
    "DenseMatrix",
    "SparseMatrix",
    "matmul",
    "matmul_dense",
    "matmul_sparse",
    "to_dense",
    "to_sparse",
    "MatrixError",
    "InvalidShape",
    "ShapeMismatch",
    "DimensionMismatch",
    "DuplicateIndex",
    "IndexOutOfBounds",
    "DivideByZero",
    "SingularMatrix",
]
