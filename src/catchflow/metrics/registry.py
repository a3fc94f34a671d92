"""Named goodness-of-fit metrics and whether calibration should raise or lower them.

``CalibrationObjective`` looks a metric up here to decide between returning
``1 - score`` and the score itself.
"""

import logging
from collections.abc import Callable

from numpy.typing import ArrayLike

logger = logging.getLogger(__name__)

type MetricFunction = Callable[[ArrayLike, ArrayLike], float]

# name -> (metric, "maximize" | "minimize")
METRICS: dict[str, tuple[MetricFunction, str]] = {}


def register(direction: str, name: str | None = None) -> Callable[[MetricFunction], MetricFunction]:
    """Record a metric under ``name`` (its function name by default).

    Registering a name again replaces the entry; a change of direction is
    logged as a warning.

    Example:
        @register("minimize")
        def mae(observed, simulated):
            ...
    """
    if direction not in ("maximize", "minimize"):
        raise ValueError(f"direction must be 'maximize' or 'minimize', got '{direction}'")

    def decorator(func: MetricFunction) -> MetricFunction:
        key = name or func.__name__
        previous = METRICS.get(key)
        if previous is not None and previous[1] != direction:
            logger.warning("Metric '%s' re-registered with direction '%s' (was '%s')", key, direction, previous[1])
        METRICS[key] = (func, direction)
        return func

    return decorator


def get_metric(name: str) -> tuple[MetricFunction, str]:
    try:
        return METRICS[name]
    except KeyError:
        raise KeyError(f"Unknown metric '{name}'. Available: {', '.join(list_metrics())}") from None


def list_metrics() -> list[str]:
    return sorted(METRICS)
