"""Errors raised by the matrix store, the multipliers and the CLI."""


class MatMulError(Exception):
    """Base class for every failure this package raises on purpose."""


class DimensionMismatch(MatMulError, ValueError):
    """Value count is not n*n, or two operands have different sizes."""


class UnalignedSize(MatMulError, ValueError):
    """Matrix size is not a multiple of the tile size."""


class IndexOutOfRange(MatMulError, IndexError):
    """Element access outside the matrix."""


class InvalidArgument(MatMulError, ValueError):
    """Bad command-line input or bad worker count."""
