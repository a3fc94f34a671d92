import logging
from typing import Any

from catchflow.errors import ConfigurationError

logger = logging.getLogger(__name__)

NODE_TYPES: dict[str, type] = {}


def register(node_type: str):
    """Decorator registering a node class under its topology type tag.

    Example:
        >>> @register("IHACRESNode")
        ... @dataclass
        ... class IHACRESNode(NetworkNode): ...
    """

    def decorator(cls: type) -> type:
        if node_type in NODE_TYPES and NODE_TYPES[node_type] is not cls:
            logger.warning("Overriding node type %s: %s -> %s", node_type, NODE_TYPES[node_type].__name__, cls.__name__)
        NODE_TYPES[node_type] = cls
        return cls

    return decorator


def get_node_class(node_type: str) -> type:
    try:
        return NODE_TYPES[node_type]
    except KeyError:
        available = ", ".join(sorted(NODE_TYPES))
        raise ConfigurationError(f"Unknown node type '{node_type}'. Available: {available}") from None


def create_node(name: str, details: dict[str, Any]):
    """Instantiate the node described by one topology entry."""
    if "node_type" not in details:
        raise ConfigurationError(f"Node '{name}' has no node_type")
    return get_node_class(details["node_type"]).from_spec(name, details)
