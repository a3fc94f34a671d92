from catchflow.common import EVAPORATION, SEEPAGE, LossReason, summarize_losses

from .base import NetworkNode
from .curves import PowerCurve, StorageCurve, TabulatedCurve
from .dam import DamNode
from .events import (
    DeficitRecorded,
    NodeEvent,
    WaterGenerated,
    WaterLost,
    WaterReceived,
    WaterReleased,
    WaterSpilled,
)
from .ihacres import IHACRESNode, IHACRESState
from .registry import NODE_TYPES, create_node, get_node_class, register

__all__ = [
    # Common
    "EVAPORATION",
    "LossReason",
    "SEEPAGE",
    "summarize_losses",
    # Events
    "DeficitRecorded",
    "NodeEvent",
    "WaterGenerated",
    "WaterLost",
    "WaterReceived",
    "WaterReleased",
    "WaterSpilled",
    # Storage relations
    "PowerCurve",
    "StorageCurve",
    "TabulatedCurve",
    # Registry
    "NODE_TYPES",
    "create_node",
    "get_node_class",
    "register",
    # Nodes
    "DamNode",
    "IHACRESNode",
    "IHACRESState",
    "NetworkNode",
]
