from multiprocessing import shared_memory

import numpy as np
import pytest

from mult_mat import (
    ALGORITHMS,
    TILE,
    DimensionMismatch,
    InvalidArgument,
    Matrix,
    UnalignedSize,
    multiply_blocked,
    multiply_naive,
    multiply_parallel,
    multiply_reordered,
)
from mult_mat import matrix_mul
from mult_mat.matrix_mul import partition_rows

ALIGNED = [multiply_blocked, multiply_reordered, multiply_parallel]
ALL = [multiply_naive] + ALIGNED


@pytest.fixture
def pool_spy(monkeypatch):
    """Record the pool size and the tasks handed to ``Pool.map``."""
    seen = {}
    real_pool = matrix_mul.Pool

    class RecordingPool:
        def __init__(self, processes):
            seen["processes"] = processes
            self._pool = real_pool(processes=processes)

        def __enter__(self):
            self._pool.__enter__()
            return self

        def __exit__(self, *exc):
            return self._pool.__exit__(*exc)

        def map(self, fn, tasks):
            seen["tasks"] = tasks
            return self._pool.map(fn, tasks)

    monkeypatch.setattr(matrix_mul, "Pool", RecordingPool)
    return seen


class TestNaive:
    def test_identity_small(self):
        m = Matrix(2, [1, 2, 3, 4])
        assert multiply_naive(Matrix.identity(2), m) == Matrix(2, [1, 2, 3, 4])

    def test_known_product(self):
        a = Matrix(2, [1, 2, 3, 4])
        b = Matrix(2, [4, 3, 2, 1])
        assert multiply_naive(a, b) == Matrix(2, [8, 5, 20, 13])

    def test_no_alignment_needed(self, rng):
        a = Matrix.random(5, rng)
        b = Matrix.random(5, rng)
        c = multiply_naive(a, b)
        assert np.allclose(c.to_numpy(), a.to_numpy() @ b.to_numpy())

    def test_ascending_summation_order(self):
        # 1e16 + 1 rounds back to 1e16, so ascending order gives exactly 0;
        # cancelling the two large terms first would give 1.
        a = Matrix(3, [1.0, 1.0, 1.0] + [0.0] * 6)
        b = Matrix(3, [1e16, 0, 0, 1.0, 0, 0, -1e16, 0, 0])
        assert multiply_naive(a, b).get(0, 0) == 0.0


@pytest.mark.parametrize("fn", ALL)
def test_summation_order_across_tile_boundaries(fn):
    # Terms at k = 0, TILE and n-1 land in three different depth tiles.
    n = 3 * TILE
    a = Matrix.zero(n)
    b = Matrix.zero(n)
    for k, term in [(0, 1e16), (TILE, 1.0), (n - 1, -1e16)]:
        a.set(0, k, 1.0)
        b.set(k, 0, term)
    c = fn(a, b)
    assert c.get(0, 0) == 0.0
    assert np.count_nonzero(c.values) == 0


@pytest.mark.parametrize("fn", ALL)
def test_identity_law(fn, operands):
    _, r = operands
    assert fn(Matrix.identity(r.n), r) == r


@pytest.mark.parametrize("fn", ALL)
def test_dimension_mismatch(fn):
    with pytest.raises(DimensionMismatch):
        fn(Matrix.zero(TILE), Matrix.zero(2 * TILE))


@pytest.mark.parametrize("fn", ALIGNED)
@pytest.mark.parametrize("n", [2, TILE + 1, 100])
def test_unaligned_size(fn, n):
    with pytest.raises(UnalignedSize):
        fn(Matrix.zero(n), Matrix.zero(n))


def test_blocked_identity_with_same_random_instance(rng):
    n = 3 * TILE
    r = Matrix.random(n, rng)
    assert multiply_blocked(Matrix.identity(n), r) == r


def test_strategies_are_bit_identical(operands):
    a, b = operands
    reference = multiply_naive(a, b)
    assert multiply_blocked(a, b) == reference
    assert multiply_reordered(a, b) == reference
    assert multiply_parallel(a, b) == reference
    # sanity check against BLAS, which is allowed to round differently
    assert np.allclose(reference.to_numpy(), a.to_numpy() @ b.to_numpy())


def test_reordered_matches_naive_single_tile(rng):
    a = Matrix.random(TILE, rng)
    b = Matrix.random(TILE, rng)
    assert multiply_reordered(a, b) == multiply_naive(a, b)


@pytest.mark.parametrize("fn", ALL)
def test_inputs_not_mutated(fn, rng):
    a = Matrix.random(TILE, rng)
    b = Matrix.random(TILE, rng)
    a_before = a.values.copy()
    b_before = b.values.copy()
    fn(a, b)
    assert np.array_equal(a.values, a_before)
    assert np.array_equal(b.values, b_before)


@pytest.mark.parametrize("fn", ALL)
def test_output_is_fresh(fn, rng):
    a = Matrix.random(TILE, rng)
    c = fn(a, Matrix.identity(TILE))
    c.set(0, 0, 42.0)
    assert a.get(0, 0) != 42.0


class TestParallel:
    @pytest.mark.parametrize("workers", [1, 2, 3, 7])
    def test_worker_count_does_not_change_result(self, workers, rng):
        a = Matrix.random(2 * TILE, rng)
        b = Matrix.random(2 * TILE, rng)
        assert multiply_parallel(a, b, workers) == multiply_reordered(a, b)

    @pytest.mark.parametrize("workers", [2, 3, 7])
    def test_explicit_workers_split_rows(self, workers, pool_spy, rng):
        a = Matrix.random(2 * TILE, rng)
        b = Matrix.random(2 * TILE, rng)
        c = multiply_parallel(a, b, workers)

        assert pool_spy["processes"] == workers
        tasks = pool_spy["tasks"]
        assert len(tasks) == workers
        assert [t[0].shape[0] for t in tasks] == [
            end - start for start, end in partition_rows(2 * TILE, workers)
        ]
        assert c == multiply_reordered(a, b)

    def test_workers_capped_at_n(self, pool_spy):
        multiply_parallel(Matrix.identity(TILE), Matrix.identity(TILE), TILE + 5)
        assert pool_spy["processes"] == TILE
        assert all(t[0].shape[0] == 1 for t in pool_spy["tasks"])

    def test_shared_block_released(self, pool_spy, rng):
        a = Matrix.random(TILE, rng)
        multiply_parallel(a, Matrix.identity(TILE), 2)
        name = pool_spy["tasks"][0][1]
        assert all(t[1] == name for t in pool_spy["tasks"])
        with pytest.raises(FileNotFoundError):
            shared_memory.SharedMemory(name=name)

    @pytest.mark.parametrize("workers", [0, -2])
    def test_bad_worker_count(self, workers):
        with pytest.raises(InvalidArgument):
            multiply_parallel(Matrix.zero(TILE), Matrix.zero(TILE), workers)


class TestPartitionRows:
    def test_even(self):
        assert partition_rows(8, 4) == [(0, 2), (2, 4), (4, 6), (6, 8)]

    def test_uneven(self):
        assert partition_rows(10, 4) == [(0, 3), (3, 6), (6, 8), (8, 10)]

    @pytest.mark.parametrize("n,workers", [(1, 1), (64, 3), (192, 5), (7, 7)])
    def test_covers_all_rows_once(self, n, workers):
        chunks = partition_rows(n, workers)
        assert len(chunks) == workers
        rows = [r for start, end in chunks for r in range(start, end)]
        assert rows == list(range(n))
        sizes = [end - start for start, end in chunks]
        assert max(sizes) - min(sizes) <= 1


def test_algorithm_table():
    assert ALGORITHMS == {
        "naive": multiply_naive,
        "blocked": multiply_blocked,
        "iter": multiply_reordered,
        "rayon": multiply_parallel,
    }
