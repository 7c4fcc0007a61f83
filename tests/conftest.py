import sys
from pathlib import Path

import numpy as np
import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def correlated_data(rng):
    """300 rows, 6 features: a noisy chain 1 -> 2 -> 3, plus 3 independent columns."""
    n = 300
    x1 = rng.integers(0, 2, n)
    x2 = np.where(rng.random(n) < 0.9, x1, 1 - x1)
    x3 = np.where(rng.random(n) < 0.8, x2, 1 - x2)
    noise = rng.integers(0, 2, (n, 3))
    return np.column_stack([x1, x2, x3, noise])
