import copy
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from catchflow.errors import ConfigurationError
from catchflow.node import NetworkNode, create_node

from .validation import validate_topology

logger = logging.getLogger(__name__)


def _as_id_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


@dataclass
class StreamNetwork:
    """Directed tree of catchment and reservoir nodes.

    Edges point downstream. A node may have several inlets but at most one
    outlet, and every node drains to a single terminal node. The structure is
    fixed once built; node state changes as the network is run.
    """

    name: str = ""
    _nodes: dict[str, NetworkNode] = field(default_factory=dict, init=False, repr=False)
    _graph: nx.DiGraph = field(default_factory=nx.DiGraph, init=False, repr=False)
    _terminal: str = field(default="", init=False, repr=False)
    _completed: set[tuple[str, int]] = field(default_factory=set, init=False, repr=False)

    @classmethod
    def from_nodes(
        cls,
        nodes: list[NetworkNode],
        edges: list[tuple[str, str]],
        *,
        name: str = "",
    ) -> "StreamNetwork":
        """Assemble a network from node instances and (upstream, downstream) pairs."""
        errors: list[str] = []
        network = cls(name=name)

        for node in nodes:
            if node.node_id in network._nodes:
                errors.append(f"Duplicate node identifier '{node.node_id}'")
                continue
            network._nodes[node.node_id] = node
            network._graph.add_node(node.node_id)

        for upstream, downstream in edges:
            for node_id in (upstream, downstream):
                if node_id not in network._nodes:
                    errors.append(f"Edge {upstream} -> {downstream}: node '{node_id}' does not exist")
            if upstream == downstream:
                errors.append(f"Node '{upstream}' cannot flow into itself")

        if errors:
            raise ConfigurationError("\n".join(dict.fromkeys(errors)))

        network._graph.add_edges_from(edges)
        network._terminal = validate_topology(network._graph)
        logger.debug(
            "Built network %r: %d nodes, %d edges, terminal %s",
            name,
            network._graph.number_of_nodes(),
            network._graph.number_of_edges(),
            network._terminal,
        )
        return network

    @property
    def graph(self) -> nx.DiGraph:
        """Read-only view of the topology."""
        return self._graph.copy(as_view=True)

    @property
    def nodes(self) -> dict[str, NetworkNode]:
        return self._nodes

    @property
    def terminal(self) -> str:
        """Identifier of the most downstream node."""
        return self._terminal

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def get_node(self, node_id: str) -> NetworkNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise ConfigurationError(f"Node '{node_id}' is not in network '{self.name}'") from None

    def find_node(self, name: str) -> NetworkNode:
        """Look a node up by its name rather than its identifier."""
        for node in self._nodes.values():
            if node.name == name:
                return node
        raise ConfigurationError(f"No node named '{name}' in network '{self.name}'")

    def inlets(self, node_id: str) -> set[str]:
        self.get_node(node_id)
        return set(self._graph.predecessors(node_id))

    def outlets(self, node_id: str) -> str | None:
        self.get_node(node_id)
        successors = list(self._graph.successors(node_id))
        if len(successors) > 1:
            raise ConfigurationError(f"Node '{node_id}' has multiple outlets: {sorted(successors)}")
        return successors[0] if successors else None

    def headwaters(self) -> list[str]:
        """Nodes without inlets, in identifier order."""
        return sorted(n for n in self._graph.nodes if self._graph.in_degree(n) == 0)

    def upstream_of(self, node_id: str) -> set[str]:
        """Every node whose water eventually reaches ``node_id``."""
        self.get_node(node_id)
        return nx.ancestors(self._graph, node_id)

    def topological_order(self) -> list[str]:
        return list(nx.lexicographical_topological_sort(self._graph))

    def is_complete(self, node_id: str, t: int) -> bool:
        return (node_id, t) in self._completed and self._nodes[node_id].timestep > t

    def mark_complete(self, node_id: str, t: int) -> None:
        self._completed.add((node_id, t))

    def reset(self) -> None:
        """Reset all nodes for a fresh simulation run.

        Preserves topology and parameters, clears output histories, events and
        the record of evaluated timesteps.
        """
        for node in self._nodes.values():
            node.reset()
        self._completed.clear()

    def copy(self) -> "StreamNetwork":
        """Deep copy with private node state, for use by a separate worker."""
        return copy.deepcopy(self)


def build(spec: Mapping[str, Mapping[str, Any]], *, name: str = "") -> StreamNetwork:
    """Construct a network from a deserialized topology description.

    ``spec`` maps node names to their details. Each entry needs ``node_type``
    and may give ``node_id`` (defaults to the name), ``inlets`` (list of
    upstream identifiers), ``outlets`` (the downstream identifier) and any
    model specific keys such as ``area`` or ``parameters``.

    Raises:
        ConfigurationError: On duplicate identifiers, references to unknown
            nodes, unknown node types, cycles, multiple outlets or more than
            one terminal node.
        ParameterError: If a parameter value lies outside its bounds.

    Example:
        >>> network = build({
        ...     "upper": {"node_type": "IHACRESNode", "node_id": "410730", "outlets": "410731", "area": 130.0},
        ...     "lower": {"node_type": "IHACRESNode", "node_id": "410731", "inlets": ["410730"], "area": 60.0},
        ... })
    """
    if not spec:
        raise ConfigurationError("Network topology has no nodes")

    errors: list[str] = []
    nodes: list[NetworkNode] = []
    edges: dict[tuple[str, str], None] = {}

    for node_name, details in spec.items():
        node = create_node(str(node_name), dict(details))
        nodes.append(node)

        for inlet in _as_id_list(details.get("inlets")):
            edges[(inlet, node.node_id)] = None
        outlets = _as_id_list(details.get("outlets"))
        if len(outlets) > 1:
            errors.append(f"Node '{node.node_id}' lists {len(outlets)} outlets; multiple outlets are not supported")
        for outlet in outlets:
            edges[(node.node_id, outlet)] = None

    if errors:
        raise ConfigurationError("\n".join(errors))

    return StreamNetwork.from_nodes(nodes, list(edges), name=name)


def get_node(network: StreamNetwork, node_id: str) -> NetworkNode:
    return network.get_node(node_id)


def inlets(network: StreamNetwork, node_id: str) -> set[str]:
    """Direct upstream neighbours of ``node_id``."""
    return network.inlets(node_id)


def outlets(network: StreamNetwork, node_id: str) -> str | None:
    """Direct downstream neighbour of ``node_id``, or None at the terminal node."""
    return network.outlets(node_id)
