"""Dense square matrix stored as a flat row-major float64 buffer."""

from typing import Optional

import numpy as np

from .display import format_matrix
from .errors import DimensionMismatch, IndexOutOfRange, UnalignedSize

# Tile edge used by the blocked, reordered and parallel multipliers.
TILE = 64


def _check_dimension(n) -> int:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n <= 0:
        raise DimensionMismatch(f"matrix size must be a positive integer, got {n!r}")
    return int(n)


class Matrix:
    """n x n matrix of float64; element (i, j) lives at offset i*n + j.

    The constructor copies ``values``, so a Matrix never shares its buffer
    with another Matrix or with the caller.
    """

    __hash__ = None

    def __init__(self, n: int, values) -> None:
        n = _check_dimension(n)
        buf = np.array(values, dtype=np.float64)
        if buf.ndim != 1 or buf.size != n * n:
            raise DimensionMismatch(
                f"expected {n * n} values for a {n}x{n} matrix, got {buf.size}"
            )
        self._n = n
        self._values = buf

    # ------------------------------------------------------------------
    # Generators
    # ------------------------------------------------------------------
    @classmethod
    def zero(cls, n: int) -> "Matrix":
        n = _check_dimension(n)
        return cls(n, np.zeros(n * n, dtype=np.float64))

    @classmethod
    def identity(cls, n: int) -> "Matrix":
        m = cls.zero(n)
        for i in range(m.n):
            m.set(i, i, 1.0)
        return m

    @classmethod
    def random(cls, n: int, rng: Optional[np.random.Generator] = None) -> "Matrix":
        """Elements drawn independently from U[-1.0, 1.0).

        Pass a seeded ``numpy.random.Generator`` for reproducible matrices;
        without one a fresh OS-seeded generator is used.
        """
        n = _check_dimension(n)
        if rng is None:
            rng = np.random.default_rng()
        return cls(n, rng.uniform(-1.0, 1.0, size=n * n))

    @classmethod
    def from_numpy(cls, array) -> "Matrix":
        array = np.asarray(array, dtype=np.float64)
        if array.ndim != 2 or array.shape[0] != array.shape[1]:
            raise DimensionMismatch(f"expected a square 2-D array, got shape {array.shape}")
        return cls(array.shape[0], array.reshape(-1))

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    @property
    def n(self) -> int:
        return self._n

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the row-major buffer."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    def _offset(self, i: int, j: int) -> int:
        if not (0 <= i < self._n and 0 <= j < self._n):
            raise IndexOutOfRange(f"index ({i}, {j}) out of range for a {self._n}x{self._n} matrix")
        return i * self._n + j

    def get(self, i: int, j: int) -> float:
        return float(self._values[self._offset(i, j)])

    def set(self, i: int, j: int, value: float) -> None:
        self._values[self._offset(i, j)] = value

    def row(self, i: int) -> np.ndarray:
        """Read-only view of row ``i``."""
        if not 0 <= i < self._n:
            raise IndexOutOfRange(f"row {i} out of range for a {self._n}x{self._n} matrix")
        view = self._values[i * self._n:(i + 1) * self._n]
        view.flags.writeable = False
        return view

    def number_of_blocks(self) -> int:
        if self._n % TILE != 0:
            raise UnalignedSize(
                f"matrix size {self._n} must be a multiple of the block size {TILE}"
            )
        return self._n // TILE

    def to_numpy(self) -> np.ndarray:
        return self._values.reshape(self._n, self._n).copy()

    # ------------------------------------------------------------------
    # Comparison / rendering
    # ------------------------------------------------------------------
    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self._n == other._n and bool(np.array_equal(self._values, other._values))

    def __repr__(self) -> str:
        return f"Matrix(n={self._n})"

    def __str__(self) -> str:
        return format_matrix(self)
