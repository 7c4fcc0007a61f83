from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Sequence
import logging

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from errors import DataShapeError

logger = logging.getLogger(__name__)


# ---------------------------- Weighted data ---------------------------------
@dataclass
class WeightedDataset:
    """
    N x F matrix of binary features plus one non-negative weight per row.

    Parameters
    ----------
    features      : array-like of shape (N, F), values in {0, 1}
    weights       : array-like of shape (N,), non-negative
    feature_names : optional column labels, defaults to "1".."F"
    """
    features: NDArray[np.int8]
    weights: NDArray[np.float64]
    feature_names: list[str] = field(default_factory=list)

    def __post_init__(self):
        X = np.asarray(self.features)
        if X.ndim != 2:
            raise DataShapeError(f"feature matrix must be 2-D, got {X.ndim}-D")
        if X.shape[1] == 0:
            raise DataShapeError("feature matrix has no columns")
        if X.size and not np.isin(X, (0, 1)).all():
            raise DataShapeError("feature values must be binary (0/1)")

        w = np.asarray(self.weights, dtype=np.float64)
        if w.ndim != 1 or w.shape[0] != X.shape[0]:
            raise DataShapeError(
                f"weights must have one entry per row: got {w.shape} for {X.shape[0]} rows")
        if not np.isfinite(w).all() or (w < 0).any():
            raise DataShapeError("weights must be finite and non-negative")

        names = [str(n) for n in self.feature_names] if len(self.feature_names) else \
                [str(i) for i in range(1, X.shape[1] + 1)]
        if len(names) != X.shape[1]:
            raise DataShapeError(
                f"{len(names)} feature names given for {X.shape[1]} columns")

        self.features = X.astype(np.int8, copy=False)
        self.weights = w
        self.feature_names = names

    @classmethod
    def from_array(cls, data, weights: Optional[Sequence[float]] = None,
                   feature_names: Optional[Sequence[str]] = None) -> WeightedDataset:
        """Uniform weights of 1.0 unless `weights` is given."""
        X = np.asarray(data)
        if weights is None:
            weights = np.ones(X.shape[0] if X.ndim else 0, dtype=np.float64)
        return cls(X, np.asarray(weights), list(feature_names or []))

    @classmethod
    def from_frame(cls, df: pd.DataFrame,
                   weights: Optional[Sequence[float] | pd.Series] = None) -> WeightedDataset:
        if isinstance(weights, pd.Series):
            weights = weights.reindex(df.index).to_numpy()
        return cls.from_array(df.to_numpy(), weights, list(df.columns))

    @property
    def num_rows(self) -> int:
        return self.features.shape[0]

    @property
    def num_features(self) -> int:
        return self.features.shape[1]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.features, columns=self.feature_names)


# ---------------------------- Distribution cache ----------------------------
@dataclass(frozen=True, slots=True)
class DistributionCache:
    """
    marginal : (F, 2)     marginal[i, k]   = P(X_i = k)
    pairwise : (F, F, 4)  pairwise[i, j]   = [P(00), P(01), P(10), P(11)]
                          indexed by 2 * x_i + x_j. The diagonal is unused.
    """
    marginal: NDArray[np.float64]
    pairwise: NDArray[np.float64]

    @property
    def num_features(self) -> int:
        return self.marginal.shape[0]

    def marginal_frame(self, feature_names: Optional[Sequence[str]] = None) -> pd.DataFrame:
        return pd.DataFrame(self.marginal, index=feature_names, columns=[0, 1])


def build_distribution_cache(dataset: WeightedDataset, alpha: float = 0.0001) -> DistributionCache:
    """
    Laplace-smoothed weighted marginals and pairwise joints.

        P(X_i = a)            = (c_i(a) + α) / (W + 2α)
        P(X_i = a, X_j = b)   = (c_ij(a, b) + α) / (W + 4α)

    where c are weighted counts and W is the total weight.
    """
    if alpha < 0:
        raise ValueError(f"alpha must be non-negative, got {alpha}")

    X = dataset.features.astype(np.float64)
    w = dataset.weights
    total = float(w.sum())
    if alpha == 0 and total <= 0:
        raise DataShapeError("no probability mass: total weight is 0 and alpha is 0")

    ones = w @ X                                  # c_i(1)
    zeros = total - ones                          # c_i(0)
    marginal = np.column_stack([zeros, ones]) + alpha
    marginal /= total + 2 * alpha

    c11 = X.T @ (X * w[:, None])
    c10 = ones[:, None] - c11                     # X_i = 1, X_j = 0
    c01 = ones[None, :] - c11                     # X_i = 0, X_j = 1
    c00 = total - c11 - c10 - c01
    pairwise = np.stack([c00, c01, c10, c11], axis=-1)
    np.maximum(pairwise, 0.0, out=pairwise)       # rounding can leave -0.0 / -1e-16
    pairwise += alpha
    pairwise /= total + 4 * alpha

    logger.debug("Distribution cache: %d rows, %d features, total weight %.6g",
                 dataset.num_rows, dataset.num_features, total)
    return DistributionCache(marginal=marginal, pairwise=pairwise)
