import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike

from catchflow.climate import Climate
from catchflow.errors import ConfigurationError, DataAlignmentError
from catchflow.execution import NodeSeries, run_node
from catchflow.metrics import METRICS, MetricFunction, nnse
from catchflow.network import StreamNetwork

logger = logging.getLogger(__name__)

Direction = Literal["minimize", "maximize"]


def _direction_of(metric: MetricFunction) -> Direction:
    for func, direction in METRICS.values():
        if func is metric:
            return direction
    return "maximize"


@dataclass(frozen=True, eq=False)
class CalibrationObjective:
    """Scalar objective for one node's parameters, to be minimized.

    Calling the objective with a parameter vector applies it to ``node_id``,
    runs the network up to ``output_node_id`` (the same node unless given),
    and scores the chosen output series against ``observed``. The network is
    reset before each run and again afterwards on every path, so every call
    starts from the initial state whatever the network was used for before.

    For metrics where higher is better the value is ``1 - score``; for
    metrics where lower is better it is the score itself. The first
    ``warmup`` simulated timesteps are not scored.
    """

    network: StreamNetwork
    node_id: str
    climate: Climate
    observed: np.ndarray
    metric: MetricFunction = nnse
    direction: Direction | None = None
    output: str = "outflow"
    output_node_id: str | None = None
    warmup: int = 0
    inflow: NodeSeries | None = field(default=None, repr=False)
    water_order: NodeSeries | None = field(default=None, repr=False)
    exchange: NodeSeries | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        node = self.network.get_node(self.node_id)
        target = self.output_node_id or self.node_id
        target_node = self.network.get_node(target)
        if target != self.node_id and self.node_id not in self.network.upstream_of(target):
            raise ConfigurationError(f"Node '{self.node_id}' does not drain to output node '{target}'")
        if not hasattr(target_node, self.output) or not isinstance(getattr(target_node, self.output), list):
            raise ConfigurationError(f"Node '{target}' has no output series '{self.output}'")
        if not node.__params__:
            raise ConfigurationError(f"Node '{self.node_id}' has no calibratable parameters")

        observed = np.asarray(self.observed, dtype=np.float64)
        if self.warmup < 0:
            raise DataAlignmentError(f"warmup cannot be negative, got {self.warmup}")
        expected = self.climate.n_timesteps - self.warmup
        if observed.ndim != 1 or len(observed) != expected:
            raise DataAlignmentError(
                f"Observed series has {len(observed)} values, expected {expected} "
                f"({self.climate.n_timesteps} timesteps minus {self.warmup} warmup)"
            )
        object.__setattr__(self, "observed", observed)
        object.__setattr__(self, "direction", self.direction or _direction_of(self.metric))

    @property
    def target(self) -> str:
        return self.output_node_id or self.node_id

    def simulate(self, params: Sequence[float] | np.ndarray) -> np.ndarray:
        """Run with ``params`` and return the scored part of the output series.

        The network is left in its simulated state; callers reset it.
        """
        self.network.get_node(self.node_id).update_parameters(params)
        run_node(
            self.network,
            self.target,
            self.climate,
            inflow=self.inflow,
            water_order=self.water_order,
            exchange=self.exchange,
        )
        series = getattr(self.network.get_node(self.target), self.output)
        return np.asarray(series, dtype=np.float64)[self.warmup :]

    def score(self, params: Sequence[float] | np.ndarray) -> float:
        """Raw metric value for ``params``, simulated from the initial state."""
        self.network.reset()
        try:
            return float(self.metric(self.observed, self.simulate(params)))
        finally:
            self.network.reset()

    def __call__(self, params: Sequence[float] | np.ndarray) -> float:
        value = self.score(params)
        if not np.isfinite(value):
            name = getattr(self.metric, "__name__", repr(self.metric))
            logger.warning("Metric %s returned %s for node %s", name, value, self.node_id)
            return np.inf
        if self.direction == "maximize":
            return 1.0 - value
        return value


def make_objective(
    network: StreamNetwork,
    node_id: str,
    climate: Climate,
    observed: ArrayLike,
    *,
    metric: MetricFunction = nnse,
    **kwargs,
) -> CalibrationObjective:
    """Build the objective an external optimizer minimizes for ``node_id``.

    Example:
        >>> objective = make_objective(network, "406219", climate, flows, metric=nnse)
        >>> objective([200.0, 20.0, 1.0, 0.8, 2.5, 50.0, 0.7])
    """
    return CalibrationObjective(
        network=network, node_id=node_id, climate=climate, observed=observed, metric=metric, **kwargs
    )
