"""
Test suite for distribution_cache module.

Validates:
1. Marginal and pairwise tables are normalized
2. Laplace smoothing and weighted counting
3. Pairwise entry ordering (00, 01, 10, 11)
4. Input validation (DataShapeError)
5. DataFrame construction keeps feature names
"""

import numpy as np
import pandas as pd
import pytest

from distribution_cache import WeightedDataset, build_distribution_cache
from errors import DataShapeError


def test_tables_are_normalized(rng):
    X = rng.integers(0, 2, (50, 5))
    w = rng.random(50) * 3
    cache = build_distribution_cache(WeightedDataset(X, w), alpha=0.0001)

    assert cache.marginal.shape == (5, 2)
    assert cache.pairwise.shape == (5, 5, 4)
    np.testing.assert_allclose(cache.marginal.sum(axis=1), 1.0, atol=1e-9)
    np.testing.assert_allclose(cache.pairwise.sum(axis=2), 1.0, atol=1e-9)
    assert (cache.pairwise > 0).all(), "smoothing keeps every cell positive"


def test_two_row_example():
    data = WeightedDataset.from_array([[1, 1], [0, 0]])
    cache = build_distribution_cache(data, alpha=0.0001)

    assert cache.marginal[0] == pytest.approx([0.5, 0.5])
    assert cache.marginal[1] == pytest.approx([0.5, 0.5])
    assert cache.pairwise[0, 1] == pytest.approx([0.5, 0.0, 0.0, 0.5], abs=1e-3)
    assert 0 < cache.pairwise[0, 1, 1] < 1e-4


def test_weighted_counts_and_ordering():
    X = np.array([[1, 0], [0, 1]])
    cache = build_distribution_cache(WeightedDataset(X, [3.0, 1.0]), alpha=0.0)

    assert cache.marginal[0] == pytest.approx([0.25, 0.75])
    assert cache.marginal[1] == pytest.approx([0.75, 0.25])
    # (x0, x1): 00, 01, 10, 11
    assert cache.pairwise[0, 1] == pytest.approx([0.0, 0.25, 0.75, 0.0])
    assert cache.pairwise[1, 0] == pytest.approx([0.0, 0.75, 0.25, 0.0])


def test_smoothing_on_constant_column():
    X = np.ones((4, 2), dtype=int)
    cache = build_distribution_cache(WeightedDataset.from_array(X), alpha=1.0)

    assert cache.marginal[0] == pytest.approx([1 / 6, 5 / 6])
    assert cache.pairwise[0, 1] == pytest.approx([1 / 8, 1 / 8, 1 / 8, 5 / 8])


def test_zero_weight_rows_are_ignored():
    X = np.array([[1, 1], [0, 0], [1, 0]])
    with_zero = build_distribution_cache(WeightedDataset(X, [1.0, 1.0, 0.0]), alpha=0.0)
    without = build_distribution_cache(WeightedDataset(X[:2], [1.0, 1.0]), alpha=0.0)

    np.testing.assert_allclose(with_zero.marginal, without.marginal)
    np.testing.assert_allclose(with_zero.pairwise, without.pairwise)


@pytest.mark.parametrize("features, weights", [
    (np.zeros((3, 2)), np.ones(2)),                 # weight length mismatch
    (np.array([[0, 2], [1, 0]]), np.ones(2)),       # non-binary value
    (np.zeros((3, 0)), np.ones(3)),                 # no features
    (np.zeros(3), np.ones(3)),                      # not 2-D
    (np.zeros((2, 2)), np.array([1.0, -1.0])),      # negative weight
    (np.zeros((2, 2)), np.array([1.0, np.nan])),    # non-finite weight
])
def test_invalid_datasets(features, weights):
    with pytest.raises(DataShapeError):
        WeightedDataset(features, weights)


def test_data_shape_error_is_value_error():
    with pytest.raises(ValueError):
        WeightedDataset(np.zeros((3, 2)), np.ones(4))


def test_no_mass_without_smoothing():
    data = WeightedDataset(np.zeros((2, 2)), np.zeros(2))
    with pytest.raises(DataShapeError):
        build_distribution_cache(data, alpha=0.0)
    # with smoothing the distribution is uniform
    cache = build_distribution_cache(data, alpha=0.5)
    assert cache.marginal[0] == pytest.approx([0.5, 0.5])


def test_negative_alpha_rejected():
    with pytest.raises(ValueError):
        build_distribution_cache(WeightedDataset.from_array([[0, 1]]), alpha=-1.0)


def test_from_frame_keeps_names_and_weights():
    df = pd.DataFrame({"rain": [1, 0, 1], "wet": [1, 0, 0]}, index=[10, 11, 12])
    weights = pd.Series([0.5, 2.0, 1.0], index=[12, 10, 11])
    data = WeightedDataset.from_frame(df, weights)

    assert data.feature_names == ["rain", "wet"]
    assert data.num_rows == 3 and data.num_features == 2
    np.testing.assert_allclose(data.weights, [2.0, 1.0, 0.5])
    assert list(data.to_frame().columns) == ["rain", "wet"]


def test_default_names_are_one_based():
    data = WeightedDataset.from_array(np.zeros((2, 3), dtype=int))
    assert data.feature_names == ["1", "2", "3"]
    np.testing.assert_allclose(data.weights, 1.0)


def test_marginal_frame():
    data = WeightedDataset.from_array([[1, 0], [1, 1]], feature_names=["a", "b"])
    frame = build_distribution_cache(data).marginal_frame(data.feature_names)
    assert list(frame.index) == ["a", "b"]
    assert frame.loc["a", 1] == pytest.approx(1.0, abs=1e-3)
