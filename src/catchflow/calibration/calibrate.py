"""Calibration drivers wiring node objectives to ctrl-freak.

The optimizer is external; this module only prepares the objective, bounds
and operators, and applies the best candidate it returns.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike

from catchflow.climate import Climate
from catchflow.metrics import MetricFunction, nnse
from catchflow.network import StreamNetwork

from .objective import make_objective
from .result import CalibrationResult

if TYPE_CHECKING:
    from numpy.random import Generator
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


def _derive_seeds(seed: int | None, n: int) -> list[int]:
    rng = np.random.default_rng(seed)
    return [int(x) for x in rng.integers(0, 2**31, size=n)]


def calibrate(
    network: StreamNetwork,
    node_id: str,
    climate: Climate,
    observed: ArrayLike,
    *,
    metric: MetricFunction = nnse,
    pop_size: int = 50,
    generations: int = 100,
    seed: int | None = None,
    callback: Callable[..., bool] | None = None,
    **objective_kwargs: Any,
) -> CalibrationResult:
    """Calibrate the parameters of one node with a genetic algorithm.

    Candidates are drawn within the node's declared bounds and kept inside them
    after crossover and mutation. On return the best parameters are applied to
    the node and the network is reset.

    Example:
        >>> result = calibrate(network, "406219", climate, flows, metric=nnse, generations=50, seed=42)
        >>> result.parameters["d"], result.score
    """
    # Lazy import ctrl-freak to keep it optional at import time
    from ctrl_freak import ga, polynomial_mutation, sbx_crossover

    if pop_size < 4:
        raise ValueError("pop_size must be at least 4")
    if generations < 1:
        raise ValueError("generations must be at least 1")

    objective = make_objective(network, node_id, climate, observed, metric=metric, **objective_kwargs)
    node = network.get_node(node_id)
    _, lower, upper = node.parameter_bounds()
    bounds = (lower, upper)

    def repair(x: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.clip(x, lower, upper)

    init_seed, crossover_seed, mutate_seed = _derive_seeds(seed, 3)
    sbx = sbx_crossover(eta=15.0, bounds=bounds, seed=crossover_seed)
    poly_mut = polynomial_mutation(eta=20.0, bounds=bounds, seed=mutate_seed)

    def init(rng: Generator) -> NDArray[np.float64]:
        return rng.uniform(lower, upper)

    def evaluate(x: NDArray[np.float64]) -> float:
        return objective(repair(x))

    def crossover(p1: NDArray[np.float64], p2: NDArray[np.float64]) -> NDArray[np.float64]:
        return repair(sbx(p1, p2))

    def mutate(x: NDArray[np.float64]) -> NDArray[np.float64]:
        return repair(poly_mut(x))

    logger.info(
        "Calibrating node %s (%d parameters, pop_size=%d, generations=%d)",
        node_id,
        len(node.__params__),
        pop_size,
        generations,
    )
    result = ga(
        init=init,
        evaluate=evaluate,
        crossover=crossover,
        mutate=mutate,
        pop_size=pop_size,
        n_generations=generations,
        seed=init_seed,
        callback=callback,
    )
    best_x, best_fitness = result.best
    best_x = repair(np.asarray(best_x, dtype=np.float64))

    score = objective.score(best_x)
    node.update_parameters(best_x)
    network.reset()

    parameters = {name: float(v) for name, v in zip(node.__params__, best_x, strict=True)}
    logger.info("Calibrated node %s: score=%.4f objective=%.4f %s", node_id, score, float(best_fitness), parameters)
    return CalibrationResult(
        node_id=node_id,
        parameters=parameters,
        score=score,
        objective_value=float(best_fitness),
    )


def calibrate_network(
    network: StreamNetwork,
    node_id: str,
    climate: Climate,
    calib_data: Mapping[str, ArrayLike] | pd.DataFrame,
    **kwargs: Any,
) -> dict[str, CalibrationResult]:
    """Calibrate ``node_id`` and every node upstream of it that has observations.

    Upstream nodes are calibrated first, so each node is calibrated against
    inflows produced by already calibrated parameters. Nodes missing from
    ``calib_data`` keep their parameters. Extra keyword arguments go to
    :func:`calibrate`.
    """
    results: dict[str, CalibrationResult] = {}

    def visit(current: str) -> None:
        for inlet in sorted(network.inlets(current)):
            visit(inlet)
        if current not in calib_data:
            logger.debug("No observations for node %s, skipping", current)
            return
        observed = np.asarray(calib_data[current], dtype=np.float64)
        results[current] = calibrate(network, current, climate, observed, **kwargs)

    visit(node_id)
    return results
