# Four interchangeable n x n multipliers.
#
# Every strategy accumulates C[i][j] in ascending k, one rounded multiply and
# one rounded add per term, starting from 0.0. That keeps the results
# bit-identical across strategies, not merely close.

import logging
from multiprocessing import Pool, cpu_count, shared_memory
from typing import Optional

import numpy as np

from .errors import DimensionMismatch, InvalidArgument
from .matrix import TILE, Matrix

logger = logging.getLogger(__name__)


def _check_operands(a: Matrix, b: Matrix) -> int:
    if a.n != b.n:
        raise DimensionMismatch(f"cannot multiply a {a.n}x{a.n} matrix by a {b.n}x{b.n} matrix")
    return a.n


def multiply_naive(a: Matrix, b: Matrix) -> Matrix:
    """Reference triple loop (pure Python). Defines the summation order."""
    n = _check_operands(a, b)
    logger.debug("naive multiply n=%d", n)
    av = a.values.tolist()
    bv = b.values.tolist()
    c = [0.0] * (n * n)
    for i in range(n):
        row = i * n
        for j in range(n):
            s = 0.0
            for k in range(n):
                s += av[row + k] * bv[k * n + j]
            c[row + j] = s
    return Matrix(n, c)


def multiply_blocked(a: Matrix, b: Matrix) -> Matrix:
    """Tiled triple loop; partial sums stay in C between depth tiles."""
    n = _check_operands(a, b)
    blocks = a.number_of_blocks()
    logger.debug("blocked multiply n=%d blocks=%d", n, blocks)
    s = TILE
    av = a.values.tolist()
    bv = b.values.tolist()
    c = [0.0] * (n * n)
    for ii in range(blocks):
        for jj in range(blocks):
            for kk in range(blocks):
                for i in range(ii * s, (ii + 1) * s):
                    row = i * n
                    for j in range(jj * s, (jj + 1) * s):
                        acc = c[row + j]
                        for k in range(kk * s, (kk + 1) * s):
                            acc += av[row + k] * bv[k * n + j]
                        c[row + j] = acc
    return Matrix(n, c)


def _accumulate_rows(a_rows: np.ndarray, b: np.ndarray, blocks: int) -> np.ndarray:
    """Compute ``a_rows @ b`` one streamed row of ``b`` at a time."""
    c = np.zeros((a_rows.shape[0], b.shape[1]), dtype=np.float64)
    for i, a_row in enumerate(a_rows):
        c_row = c[i]
        for jj in range(blocks):
            for j in range(jj * TILE, (jj + 1) * TILE):
                c_row += a_row[j] * b[j]
    return c


def multiply_reordered(a: Matrix, b: Matrix) -> Matrix:
    """Row-update form: C[i, :] += A[i, j] * B[j, :] for ascending j."""
    n = _check_operands(a, b)
    blocks = a.number_of_blocks()
    logger.debug("reordered multiply n=%d blocks=%d", n, blocks)
    c = _accumulate_rows(a.values.reshape(n, n), b.values.reshape(n, n), blocks)
    return Matrix(n, c.reshape(-1))


def partition_rows(n: int, workers: int):
    """Split ``range(n)`` into ``workers`` contiguous (start, end) chunks.

    The first ``n % workers`` chunks take one extra row.
    """
    base = n // workers
    rem = n % workers

    chunks = []
    r = 0
    for w in range(workers):
        take = base + (1 if w < rem else 0)
        chunks.append((r, r + take))
        r += take
    return chunks


def _worker_rows(args):
    a_rows, shm_name, n, blocks = args
    shm = shared_memory.SharedMemory(name=shm_name)
    b = np.ndarray((n, n), dtype=np.float64, buffer=shm.buf)
    try:
        return _accumulate_rows(a_rows, b, blocks)
    finally:
        del b
        shm.close()


def multiply_parallel(a: Matrix, b: Matrix, workers: Optional[int] = None) -> Matrix:
    """
    Reordered multiply with output rows split across a process pool.
    Each task owns a disjoint row chunk; the call returns after all chunks join.
    B is placed in one shared memory block that every worker reads.
    ``workers`` defaults to cpu_count(); an explicit count is capped at n.
    """
    n = _check_operands(a, b)
    blocks = a.number_of_blocks()
    if workers is None:
        workers = cpu_count()
    if workers < 1:
        raise InvalidArgument(f"workers should be a positive integer, got {workers}")
    workers = min(workers, n)
    logger.debug("parallel multiply n=%d blocks=%d workers=%d", n, blocks, workers)

    av = a.values.reshape(n, n)
    shm = shared_memory.SharedMemory(create=True, size=b.values.nbytes)
    shared_b = np.ndarray((n, n), dtype=np.float64, buffer=shm.buf)
    try:
        shared_b[:] = b.values.reshape(n, n)
        tasks = [(av[start:end], shm.name, n, blocks) for start, end in partition_rows(n, workers)]

        with Pool(processes=workers) as pool:
            chunks = pool.map(_worker_rows, tasks)
    finally:
        del shared_b
        shm.close()
        shm.unlink()

    return Matrix(n, np.vstack(chunks).reshape(-1))


# Names accepted by the CLI and the benchmark.
ALGORITHMS = {
    "naive": multiply_naive,
    "blocked": multiply_blocked,
    "iter": multiply_reordered,
    "rayon": multiply_parallel,
}
