"""Goodness-of-fit metrics for hydrological series.

All metrics take (observed, simulated) arrays of equal length and return a
scalar score. Unless noted, higher is better and 1.0 is a perfect fit.

The three Kling-Gupta variants each come with two transforms that map the
unbounded ``(-inf, 1]`` range to a bounded one:

    bounded:    x / (2 - x)    range (-1, 1]
    normalized: 1 / (2 - x)    range (0, 1]
"""

import numpy as np
from numpy.typing import ArrayLike
from scipy import stats

from .registry import register


def _as_arrays(observed: ArrayLike, simulated: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    obs = np.asarray(observed, dtype=np.float64)
    sim = np.asarray(simulated, dtype=np.float64)
    if obs.ndim != 1 or sim.ndim != 1:
        raise ValueError("observed and simulated must be one-dimensional")
    if len(obs) != len(sim):
        raise ValueError(f"observed and simulated must have equal length, got {len(obs)} and {len(sim)}")
    if len(obs) == 0:
        raise ValueError("observed and simulated cannot be empty")
    return obs, sim


def _bounded(x: float) -> float:
    return float(x / (2.0 - x))


def _normalized(x: float) -> float:
    return float(1.0 / (2.0 - x))


def _pearson(obs: np.ndarray, sim: np.ndarray) -> float:
    if np.std(obs) == 0 or np.std(sim) == 0:
        return 1.0 if np.array_equal(obs, sim) else 0.0
    return float(np.corrcoef(obs, sim)[0, 1])


def _ratio(num: float, den: float) -> float:
    if den == 0:
        return 1.0 if num == 0 else 0.0
    return float(num / den)


def _euclidean(*components: float) -> float:
    return float(1.0 - np.sqrt(sum((c - 1.0) ** 2 for c in components)))


# Error based


@register("minimize")
def rmse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Root Mean Square Error.

    Range: [0, inf), where 0 is perfect match.
    """
    obs, sim = _as_arrays(observed, simulated)
    return float(np.sqrt(np.mean((obs - sim) ** 2)))


# Efficiency based


@register("maximize")
def nse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Nash-Sutcliffe Efficiency.

    NSE = 1 - sum((obs - sim)^2) / sum((obs - mean(obs))^2)

    Range: (-inf, 1], where 1 is perfect match.
    """
    obs, sim = _as_arrays(observed, simulated)
    numerator = np.sum((obs - sim) ** 2)
    denominator = np.sum((obs - np.mean(obs)) ** 2)
    if denominator == 0:
        return 1.0 if numerator == 0 else -np.inf
    return float(1.0 - numerator / denominator)


@register("maximize")
def r2(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Coefficient of determination, computed as the Nash-Sutcliffe Efficiency."""
    return nse(observed, simulated)


def adj_r2(observed: ArrayLike, simulated: ArrayLike, p: int) -> float:
    """Adjusted coefficient of determination for a model with ``p`` parameters.

    adj_R2 = 1 - (1 - R2) * (n - 1) / (n - p - 1)
    """
    obs, sim = _as_arrays(observed, simulated)
    n = len(obs)
    if p < 0 or n - p - 1 <= 0:
        raise ValueError(f"adj_r2 needs more observations than parameters + 1, got n={n}, p={p}")
    return float(1.0 - (1.0 - nse(obs, sim)) * (n - 1) / (n - p - 1))


@register("maximize")
def nnse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Normalized NSE, 1 / (2 - NSE).

    Range: (0, 1], where 1 is perfect match and 0.5 equals the mean of observations.
    """
    return _normalized(nse(observed, simulated))


@register("maximize")
def lme(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Liu Mean Efficiency.

    LME = 1 - sqrt((r * std(sim) / std(obs) - 1)^2 + (mean(sim) / mean(obs) - 1)^2)

    Range: (-inf, 1].
    """
    obs, sim = _as_arrays(observed, simulated)
    k1 = _pearson(obs, sim) * _ratio(np.std(sim), np.std(obs))
    beta = _ratio(np.mean(sim), np.mean(obs))
    return _euclidean(k1, beta)


# Kling-Gupta family


@register("maximize")
def kge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Kling-Gupta Efficiency.

    KGE = 1 - sqrt((r-1)^2 + (alpha-1)^2 + (beta-1)^2)

    Where:
        r = Pearson correlation coefficient
        alpha = std(sim) / std(obs)
        beta = mean(sim) / mean(obs)

    Range: (-inf, 1], where 1 is perfect match.
    """
    obs, sim = _as_arrays(observed, simulated)
    r = _pearson(obs, sim)
    alpha = _ratio(np.std(sim), np.std(obs))
    beta = _ratio(np.mean(sim), np.mean(obs))
    return _euclidean(r, alpha, beta)


@register("maximize")
def mkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Modified KGE, using the ratio of coefficients of variation.

    gamma = (std(sim) / mean(sim)) / (std(obs) / mean(obs))
    so bias and variability are not cross-correlated.
    """
    obs, sim = _as_arrays(observed, simulated)
    r = _pearson(obs, sim)
    beta = _ratio(np.mean(sim), np.mean(obs))
    gamma = _ratio(_ratio(np.std(sim), np.mean(sim)), _ratio(np.std(obs), np.mean(obs)))
    return _euclidean(r, gamma, beta)


@register("maximize")
def npkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Non-parametric KGE.

    Uses Spearman rank correlation and compares normalized flow duration
    curves for the variability term:

        alpha = 1 - 0.5 * sum(|sort(sim) / sum(sim) - sort(obs) / sum(obs)|)
    """
    obs, sim = _as_arrays(observed, simulated)
    if np.array_equal(obs, sim):
        r = 1.0
    elif np.std(obs) == 0 or np.std(sim) == 0:
        r = 0.0
    else:
        r = float(stats.spearmanr(obs, sim)[0])

    obs_sum, sim_sum = np.sum(obs), np.sum(sim)
    if obs_sum == 0 or sim_sum == 0:
        alpha = 1.0 if obs_sum == sim_sum else 0.0
    else:
        fdc_obs = np.sort(obs) / obs_sum
        fdc_sim = np.sort(sim) / sim_sum
        alpha = float(1.0 - 0.5 * np.sum(np.abs(fdc_sim - fdc_obs)))

    beta = _ratio(np.mean(sim), np.mean(obs))
    return _euclidean(r, alpha, beta)


@register("maximize")
def bkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Bounded KGE, range (-1, 1]."""
    return _bounded(kge(observed, simulated))


@register("maximize")
def nkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Normalized KGE, range (0, 1]."""
    return _normalized(kge(observed, simulated))


@register("maximize")
def bmkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Bounded modified KGE, range (-1, 1]."""
    return _bounded(mkge(observed, simulated))


@register("maximize")
def nmkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Normalized modified KGE, range (0, 1]."""
    return _normalized(mkge(observed, simulated))


@register("maximize")
def bnpkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Bounded non-parametric KGE, range (-1, 1]."""
    return _bounded(npkge(observed, simulated))


@register("maximize")
def nnpkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Normalized non-parametric KGE, range (0, 1]."""
    return _normalized(npkge(observed, simulated))
