import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy.special import rel_entr

from distribution_cache import DistributionCache


def mutual_information(cache: DistributionCache) -> NDArray[np.float64]:
    """
    Pairwise mutual information (nats) from a distribution cache.

        I(i, j) = Σ_{a,b} P(a, b) · log( P(a, b) / (P(i=a) · P(j=b)) )

    Only the upper triangle is evaluated and mirrored, so the result is
    exactly symmetric. The diagonal is 0.
    """
    m = cache.marginal
    # independence[i, j, 2a + b] = P(i=a) · P(j=b)
    independence = (m[:, None, :, None] * m[None, :, None, :]).reshape(*cache.pairwise.shape)

    # rel_entr(0, q) = 0, so unsmoothed zero cells drop out of the sum
    mi = rel_entr(cache.pairwise, independence).sum(axis=-1)

    upper = np.triu(mi, k=1)
    return upper + upper.T


def mutual_information_frame(cache: DistributionCache, feature_names) -> pd.DataFrame:
    return pd.DataFrame(mutual_information(cache), index=feature_names, columns=feature_names)


def to_long_mi(mi: NDArray[np.float64], min_int: int, max_int: int) -> NDArray[np.int64]:
    """
    Rescale an MI matrix linearly onto integers, for integer-weighted solvers.
    A constant matrix maps everything onto `min_int`.
    """
    mi = np.asarray(mi, dtype=np.float64)
    d_mi = mi.max() - mi.min()
    d_int = max_int - min_int
    if d_mi == 0:
        return np.full(mi.shape, min_int, dtype=np.int64)
    return np.rint(mi * d_int / d_mi + min_int).astype(np.int64)
