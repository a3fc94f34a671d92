import networkx as nx

from catchflow.errors import ConfigurationError


def validate_topology(graph: nx.DiGraph) -> str:
    """Check that a graph forms a single-outlet tree and return its terminal node.

    Every problem found is reported together.

    Raises:
        ConfigurationError: If the graph is empty, contains a cycle, has a node
            with more than one downstream outlet, or does not drain to exactly
            one terminal node.
    """
    if graph.number_of_nodes() == 0:
        raise ConfigurationError("Network has no nodes")

    errors: list[str] = []

    # 1. Acyclic
    if not nx.is_directed_acyclic_graph(graph):
        cycle = nx.find_cycle(graph)
        path = " -> ".join(str(u) for u, _ in cycle)
        errors.append(f"Network contains a cycle: {path} -> {cycle[0][0]}")

    # 2. At most one outlet per node
    for node_id in sorted(graph.nodes):
        out_degree = graph.out_degree(node_id)
        if out_degree > 1:
            targets = ", ".join(sorted(graph.successors(node_id)))
            errors.append(
                f"Node '{node_id}' has {out_degree} outlets ({targets}); multiple outlets are not supported"
            )

    if errors:
        raise ConfigurationError("\n".join(errors))

    # 3. Single terminal
    terminals = sorted(n for n in graph.nodes if graph.out_degree(n) == 0)
    if len(terminals) != 1:
        raise ConfigurationError(
            f"Network must drain to exactly one terminal node, found {len(terminals)}: {', '.join(terminals)}"
        )
    return terminals[0]
