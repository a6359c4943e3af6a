# Command line entry point.
# Usage:
#   mult-mat <algo> <n>
#   mult-mat display 2
#   mult-mat bench 128 3 --workers 4

import argparse
import logging
import sys
import time

import numpy as np

from .bench import DEFAULT_ITERS, format_bench, run_bench
from .errors import InvalidArgument, MatMulError
from .matrix import Matrix
from .matrix_mul import ALGORITHMS, multiply_naive, multiply_parallel

logger = logging.getLogger(__name__)

ALIASES = {"reordered": "iter", "parallel": "rayon"}
ALGO_CHOICES = list(ALGORITHMS) + ["display"]
COMMANDS = ALGO_CHOICES + ["bench"]

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(log_level_str: str = "WARNING") -> None:
    """Configure the root logger with a single stream handler."""
    log_level = getattr(logging, log_level_str.upper(), None)
    if not isinstance(log_level, int):
        raise InvalidArgument(f"unknown log level {log_level_str!r}")

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stream_handler)


def parse_size(text: str) -> int:
    try:
        n = int(text)
    except ValueError:
        n = 0
    if n <= 0:
        raise InvalidArgument("n should be a positive integer")
    return n


def parse_algo(text: str) -> str:
    algo = ALIASES.get(text, text)
    if algo not in ALGO_CHOICES:
        raise InvalidArgument(f"algo should be one of {', '.join(COMMANDS)}")
    return algo


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mult-mat",
        description="Multiply two random n x n matrices with the chosen strategy.",
    )
    parser.add_argument("algo", help=f"one of {', '.join(COMMANDS)}")
    parser.add_argument("n", help="matrix size (positive integer)")
    parser.add_argument("iters", nargs="?", default=None, help="bench only: runs per strategy")
    parser.add_argument("--workers", type=int, default=None, help="parallel pool size")
    parser.add_argument("--seed", type=int, default=None, help="seed for the random operands")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def _run(args) -> None:
    n = parse_size(args.n)

    if args.algo == "bench":
        iters = DEFAULT_ITERS if args.iters is None else parse_size(args.iters)
        results = run_bench(n, iters, workers=args.workers, seed=args.seed)
        print(format_bench(results, n, iters))
        return

    algo = parse_algo(args.algo)
    if args.iters is not None:
        raise InvalidArgument(f"iters is only accepted by bench, not {args.algo}")
    rng = np.random.default_rng(args.seed)
    A = Matrix.random(n, rng)
    B = Matrix.random(n, rng)

    if algo == "display":
        print(f"{A}multiplied by\n{B}gives\n{multiply_naive(A, B)}", end="")
        return

    fn = ALGORITHMS[algo]
    start_time = time.perf_counter()
    if fn is multiply_parallel:
        fn(A, B, args.workers)
    else:
        fn(A, B)
    execution_time = time.perf_counter() - start_time
    print(f"{algo} n={n}: {execution_time:.6f}s")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        setup_logging(args.log_level)
        _run(args)
    except MatMulError as e:
        logger.debug("aborting: %r", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
