"""Goodness-of-fit metrics and a registry of their optimization directions."""

# Import functions first to trigger @register decorators
from .functions import (
    adj_r2,
    bkge,
    bmkge,
    bnpkge,
    kge,
    lme,
    mkge,
    nkge,
    nmkge,
    nnpkge,
    nnse,
    npkge,
    nse,
    r2,
    rmse,
)
from .registry import METRICS, MetricFunction, get_metric, list_metrics, register
from .split import naive_split_metric

__all__ = [
    "METRICS",
    "MetricFunction",
    "adj_r2",
    "bkge",
    "bmkge",
    "bnpkge",
    "get_metric",
    "kge",
    "list_metrics",
    "lme",
    "mkge",
    "naive_split_metric",
    "nkge",
    "nmkge",
    "nnpkge",
    "nnse",
    "npkge",
    "nse",
    "r2",
    "register",
    "rmse",
]
