from collections.abc import Callable

import numpy as np
from numpy.typing import ArrayLike

from .functions import _as_arrays, nnse
from .registry import MetricFunction, register


@register("maximize")
def naive_split_metric(
    observed: ArrayLike,
    simulated: ArrayLike,
    n_members: int = 365,
    metric: MetricFunction = nnse,
    comb_method: Callable[[np.ndarray], float] = np.mean,
) -> float:
    """Score contiguous chunks of ``n_members`` values and combine the scores.

    A model that fits well on average can still fail badly during droughts or
    floods; scoring each period on its own exposes that. A trailing chunk
    shorter than ``n_members`` is dropped. When ``n_members`` covers the whole
    series the result is ``metric`` applied to the whole series.

    Example:
        >>> naive_split_metric(obs, sim, n_members=365, metric=kge, comb_method=np.median)
    """
    obs, sim = _as_arrays(observed, simulated)
    if n_members <= 0:
        raise ValueError(f"n_members must be positive, got {n_members}")

    if n_members >= len(obs):
        return float(metric(obs, sim))

    n_chunks = len(obs) // n_members
    starts = range(0, n_chunks * n_members, n_members)
    scores = np.array(
        [metric(obs[start : start + n_members], sim[start : start + n_members]) for start in starts],
        dtype=np.float64,
    )
    return float(comb_method(scores))
