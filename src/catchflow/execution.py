"""Time-ordered, dependency-resolving evaluation of stream networks.

Evaluating a node at timestep ``t`` first brings every node upstream of it
to ``t``, upstream first, then steps the node itself. Completed ``(node, t)``
pairs are remembered on the network so shared upstream branches are
evaluated once per timestep.

Optional per-node series (``inflow``, ``water_order``, ``exchange``) are
mappings or DataFrames keyed by node identifier. Nodes without an entry get
zero.
"""

import logging
import math
from collections.abc import Mapping, Sequence

import networkx as nx
import numpy as np
import pandas as pd

from catchflow.climate import Climate
from catchflow.errors import ConfigurationError, DataAlignmentError, SimulationError
from catchflow.network import StreamNetwork
from catchflow.node import NetworkNode

logger = logging.getLogger(__name__)

NodeSeries = Mapping[str, Sequence[float] | np.ndarray | pd.Series] | pd.DataFrame
_Tables = dict[str, dict[str, np.ndarray]]


def _normalize(series: NodeSeries | None) -> dict[str, np.ndarray]:
    if series is None:
        return {}
    if isinstance(series, pd.DataFrame):
        return {str(col): series[col].to_numpy(dtype=np.float64) for col in series.columns}
    return {str(k): np.asarray(v, dtype=np.float64) for k, v in series.items()}


def _tables(inflow: NodeSeries | None, water_order: NodeSeries | None, exchange: NodeSeries | None) -> _Tables:
    return {"inflow": _normalize(inflow), "water_order": _normalize(water_order), "exchange": _normalize(exchange)}


def _value_at(tables: _Tables, kind: str, node_id: str, t: int) -> float:
    series = tables[kind].get(node_id)
    if series is None:
        return 0.0
    if t >= len(series):
        raise DataAlignmentError(f"{kind} series for node '{node_id}' has {len(series)} values, timestep {t} requested")
    value = float(series[t])
    if not math.isfinite(value):
        raise DataAlignmentError(f"Missing {kind} value for node '{node_id}' at timestep {t}")
    return value


def _check_inputs(node_ids: set[str], climate: Climate, tables: _Tables) -> None:
    errors: list[str] = []
    for node_id in sorted(node_ids):
        try:
            climate.check_gauge(node_id)
        except DataAlignmentError as e:
            errors.append(str(e))
        for kind, table in tables.items():
            if node_id in table and len(table[node_id]) < climate.n_timesteps:
                errors.append(
                    f"{kind} series for node '{node_id}' has {len(table[node_id])} values, "
                    f"climate has {climate.n_timesteps} timesteps"
                )
    if errors:
        raise DataAlignmentError("\n".join(errors))


def _evaluation_order(network: StreamNetwork, node_id: str) -> list[str]:
    """``node_id`` and everything upstream of it, upstream first."""
    involved = network.upstream_of(node_id) | {node_id}
    try:
        order = network.topological_order()
    except nx.NetworkXUnfeasible:
        cycle = nx.find_cycle(network.graph)
        raise ConfigurationError(f"Cycle detected while evaluating node '{node_id}': {cycle}") from None
    return [n for n in order if n in involved]


def _run_step(
    network: StreamNetwork,
    order: list[str],
    climate: Climate,
    t: int,
    tables: _Tables,
) -> float:
    for node_id in order:
        if network.is_complete(node_id, t):
            continue
        # raises for a node that gained a second outlet after the network was built
        network.outlets(node_id)

        node = network.get_node(node_id)
        if node.timestep != t:
            raise SimulationError(
                f"Node '{node_id}' is at timestep {node.timestep}, cannot evaluate timestep {t}; "
                "timesteps must be run in order (reset the network to start over)"
            )

        upstream = 0.0
        for inlet in sorted(network.inlets(node_id)):
            upstream += network.get_node(inlet).outflow[t]

        node.step(
            climate.at(node_id, t),
            inflow=upstream + _value_at(tables, "inflow", node_id, t),
            extraction=_value_at(tables, "water_order", node_id, t),
            exchange=_value_at(tables, "exchange", node_id, t),
        )
        network.mark_complete(node_id, t)
    return network.get_node(order[-1]).outflow[t]


def run_step(
    network: StreamNetwork,
    node_id: str,
    climate: Climate,
    timestep: int,
    *,
    inflow: NodeSeries | None = None,
    water_order: NodeSeries | None = None,
    exchange: NodeSeries | None = None,
) -> float:
    """Evaluate ``node_id`` at ``timestep``, running its upstream nodes first.

    Returns the node's outflow for the timestep. Calling again for a timestep
    that has already been evaluated returns the stored outflow.

    Raises:
        DataAlignmentError: If ``timestep`` is outside the climate range or a
            required forcing value is missing.
        SimulationError: If a node is asked for a timestep out of order.
        ConfigurationError: If the network turns out to be cyclic or a node has
            more than one outlet.
    """
    if not 0 <= timestep < climate.n_timesteps:
        raise DataAlignmentError(f"Timestep {timestep} outside climate range [0, {climate.n_timesteps})")
    order = _evaluation_order(network, node_id)
    return _run_step(network, order, climate, timestep, _tables(inflow, water_order, exchange))


def run_node(
    network: StreamNetwork,
    node_id: str,
    climate: Climate,
    *,
    inflow: NodeSeries | None = None,
    water_order: NodeSeries | None = None,
    exchange: NodeSeries | None = None,
) -> np.ndarray:
    """Run ``node_id`` and everything upstream of it over the whole climate period.

    Forcing and per-node series for every involved node are checked before the
    first timestep. Returns a copy of the node's outflow series.
    """
    node = network.get_node(node_id)
    tables = _tables(inflow, water_order, exchange)
    order = _evaluation_order(network, node_id)
    involved = set(order)
    _check_inputs(involved, climate, tables)

    logger.debug("Running node %s (%d upstream) over %d timesteps", node_id, len(involved) - 1, climate.n_timesteps)
    for t in range(climate.n_timesteps):
        _run_step(network, order, climate, t, tables)
    return np.array(node.outflow, dtype=np.float64)


def run_catchment(
    network: StreamNetwork,
    climate: Climate,
    *,
    inflow: NodeSeries | None = None,
    water_order: NodeSeries | None = None,
    exchange: NodeSeries | None = None,
) -> np.ndarray:
    """Run the whole network by running its terminal node."""
    return run_node(network, network.terminal, climate, inflow=inflow, water_order=water_order, exchange=exchange)


def run_single_node(
    node: NetworkNode,
    climate: Climate,
    *,
    inflow: Sequence[float] | np.ndarray | None = None,
    extraction: Sequence[float] | np.ndarray | None = None,
    exchange: Sequence[float] | np.ndarray | None = None,
    gauge_id: str | None = None,
) -> np.ndarray:
    """Run a node on its own, outside any network.

    Continues from the node's current timestep to the end of the climate
    period. Forcing is read for ``gauge_id`` (defaults to the node identifier).
    """
    gauge = gauge_id if gauge_id is not None else node.node_id
    tables = _tables(
        {gauge: inflow} if inflow is not None else None,
        {gauge: extraction} if extraction is not None else None,
        {gauge: exchange} if exchange is not None else None,
    )
    climate.check_gauge(gauge)
    for kind, table in tables.items():
        if gauge in table and len(table[gauge]) < climate.n_timesteps:
            raise DataAlignmentError(
                f"{kind} series has {len(table[gauge])} values, climate has {climate.n_timesteps} timesteps"
            )

    for t in range(node.timestep, climate.n_timesteps):
        node.step(
            climate.at(gauge, t),
            inflow=_value_at(tables, "inflow", gauge, t),
            extraction=_value_at(tables, "water_order", gauge, t),
            exchange=_value_at(tables, "exchange", gauge, t),
        )
    return np.array(node.outflow, dtype=np.float64)
