"""Dense square-matrix multiplication with four bit-identical strategies."""

from .display import format_matrix
from .errors import (
    DimensionMismatch,
    IndexOutOfRange,
    InvalidArgument,
    MatMulError,
    UnalignedSize,
)
from .matrix import TILE, Matrix
from .matrix_mul import (
    ALGORITHMS,
    multiply_blocked,
    multiply_naive,
    multiply_parallel,
    multiply_reordered,
)

__all__ = [
    "ALGORITHMS",
    "TILE",
    "DimensionMismatch",
    "IndexOutOfRange",
    "InvalidArgument",
    "MatMulError",
    "Matrix",
    "UnalignedSize",
    "format_matrix",
    "multiply_blocked",
    "multiply_naive",
    "multiply_parallel",
    "multiply_reordered",
]
