from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from catchflow.climate import Climate
from catchflow.network import StreamNetwork
from catchflow.node import DamNode, IHACRESNode, NetworkNode

# --- Factory Functions ---


def make_ihacres(node_id: str = "catchment", **overrides: Any) -> IHACRESNode:
    overrides.setdefault("area", 100.0)
    return IHACRESNode(node_id=node_id, **overrides)


def make_dam(node_id: str = "dam", **overrides: Any) -> DamNode:
    overrides.setdefault("max_store", 1000.0)
    overrides.setdefault("initial_storage", 500.0)
    overrides.setdefault("storage_coef", 0.0)
    return DamNode(node_id=node_id, **overrides)


def make_climate(
    *gauges: str,
    n: int = 100,
    rainfall: float | Sequence[float] = 10.0,
    evaporation: float | Sequence[float] | None = 2.0,
    temperature: float | Sequence[float] | None = None,
    start: str = "2000-01-01",
) -> Climate:
    """Daily climate with the same series for every gauge."""
    gauges = gauges or ("catchment",)
    data: dict[str, Any] = {"Date": pd.date_range(start, periods=n, freq="D")}
    for gauge in gauges:
        data[f"{gauge}_rain"] = np.broadcast_to(np.asarray(rainfall, dtype=np.float64), (n,)).copy()
        if evaporation is not None:
            data[f"{gauge}_evap"] = np.broadcast_to(np.asarray(evaporation, dtype=np.float64), (n,)).copy()
        if temperature is not None:
            data[f"{gauge}_temp"] = np.broadcast_to(np.asarray(temperature, dtype=np.float64), (n,)).copy()
    return Climate(pd.DataFrame(data))


# --- Network Builder ---


def make_chain(*nodes: NetworkNode, name: str = "chain") -> StreamNetwork:
    """Connect nodes in order, first node most upstream."""
    edges = [(up.node_id, down.node_id) for up, down in zip(nodes, nodes[1:], strict=False)]
    return StreamNetwork.from_nodes(list(nodes), edges, name=name)
