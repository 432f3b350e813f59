from .dense import matmul_dense
from .sparse import matmul_sparse

__all__ = [
    "matmul_dense",
    "matmul_sparse",
]
