# Benchmark: time every strategy on the same operands and report speedup vs naive.

import logging
import time

import numpy as np

from .matrix import Matrix
from .matrix_mul import ALGORITHMS, multiply_parallel

logger = logging.getLogger(__name__)

DEFAULT_ITERS = 3


def run_bench(n=128, iters=DEFAULT_ITERS, workers=None, seed=None):
    """Return one ``{"algo", "time", "speedup"}`` row per strategy.

    ``time`` is the mean over ``iters`` runs; ``speedup`` is relative to naive.
    All strategies must agree exactly, otherwise AssertionError.
    """
    rng = np.random.default_rng(seed)
    A = Matrix.random(n, rng)
    B = Matrix.random(n, rng)

    results = []
    reference = None
    t_naive = None
    for name, fn in ALGORITHMS.items():
        t0 = time.perf_counter()
        for _ in range(iters):
            if fn is multiply_parallel:
                C = fn(A, B, workers)
            else:
                C = fn(A, B)
        elapsed = (time.perf_counter() - t0) / iters

        if reference is None:
            reference, t_naive = C, elapsed
        elif C != reference:
            raise AssertionError(f"Mismatch between naive and {name}: n={n}")

        logger.info("bench %s n=%d time=%.6fs", name, n, elapsed)
        results.append({"algo": name, "time": elapsed, "speedup": t_naive / elapsed})
    return results


def format_bench(results, n, iters):
    lines = [f"Benchmark: A={n}x{n}, B={n}x{n}, iters={iters}"]
    for r in results:
        lines.append(f"{r['algo']:<8} time={r['time']:.6f}s  speedup={r['speedup']:.2f}x vs naive")
    return "\n".join(lines)
