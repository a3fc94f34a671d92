from .network import StreamNetwork, build, get_node, inlets, outlets
from .validation import validate_topology

__all__ = [
    "StreamNetwork",
    "build",
    "get_node",
    "inlets",
    "outlets",
    "validate_topology",
]
