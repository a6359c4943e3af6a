import numpy as np
import pytest

from mult_mat import TILE, Matrix


@pytest.fixture
def rng():
    return np.random.default_rng(123)


@pytest.fixture
def n():
    return 3 * TILE


@pytest.fixture
def operands(rng, n):
    return Matrix.random(n, rng), Matrix.random(n, rng)
