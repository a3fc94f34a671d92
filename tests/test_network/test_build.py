import pytest

from catchflow.errors import BoundViolationError, ConfigurationError
from catchflow.network import StreamNetwork, build, get_node, inlets, outlets
from catchflow.node import DamNode, IHACRESNode
from catchflow.testing import make_ihacres


class TestBuild:
    def test_builds_nodes_and_edges(self, campaspe_spec):
        network = build(campaspe_spec, name="Campaspe")

        assert len(network) == 4
        assert isinstance(get_node(network, "406000"), DamNode)
        assert isinstance(get_node(network, "406214"), IHACRESNode)
        assert set(network.graph.edges) == {("406214", "406000"), ("406219", "406000"), ("406000", "406201")}

    def test_edges_from_inlets_only(self):
        network = build(
            {
                "up": {"node_type": "IHACRESNode", "node_id": "1"},
                "down": {"node_type": "IHACRESNode", "node_id": "2", "inlets": ["1"]},
            }
        )

        assert outlets(network, "1") == "2"
        assert outlets(network, "2") is None

    def test_node_names_kept(self, campaspe_spec):
        network = build(campaspe_spec)

        assert network.get_node("406000").name == "Lake Eppalock"
        assert network.find_node("Outlet").node_id == "406201"

    def test_empty_spec(self):
        with pytest.raises(ConfigurationError, match="no nodes"):
            build({})

    def test_duplicate_identifier(self):
        with pytest.raises(ConfigurationError, match="Duplicate node identifier '1'"):
            build(
                {
                    "a": {"node_type": "IHACRESNode", "node_id": "1"},
                    "b": {"node_type": "IHACRESNode", "node_id": "1"},
                }
            )

    def test_unknown_inlet(self):
        with pytest.raises(ConfigurationError, match="node 'ghost' does not exist"):
            build({"a": {"node_type": "IHACRESNode", "inlets": ["ghost"]}})

    def test_cycle(self):
        with pytest.raises(ConfigurationError, match="cycle"):
            build(
                {
                    "a": {"node_type": "IHACRESNode", "inlets": ["c"]},
                    "b": {"node_type": "IHACRESNode", "inlets": ["a"]},
                    "c": {"node_type": "IHACRESNode", "inlets": ["b"]},
                }
            )

    def test_self_loop(self):
        with pytest.raises(ConfigurationError, match="cannot flow into itself"):
            build({"a": {"node_type": "IHACRESNode", "inlets": ["a"]}})

    def test_multiple_outlets_listed(self):
        with pytest.raises(ConfigurationError, match="multiple outlets are not supported"):
            build(
                {
                    "a": {"node_type": "IHACRESNode", "outlets": ["b", "c"]},
                    "b": {"node_type": "IHACRESNode"},
                    "c": {"node_type": "IHACRESNode"},
                }
            )

    def test_diamond_rejected(self):
        with pytest.raises(ConfigurationError, match="Node 'a' has 2 outlets"):
            build(
                {
                    "a": {"node_type": "IHACRESNode"},
                    "b": {"node_type": "IHACRESNode", "inlets": ["a"]},
                    "c": {"node_type": "IHACRESNode", "inlets": ["a"]},
                    "d": {"node_type": "IHACRESNode", "inlets": ["b", "c"]},
                }
            )

    def test_several_terminals_rejected(self):
        with pytest.raises(ConfigurationError, match="exactly one terminal node, found 2"):
            build({"a": {"node_type": "IHACRESNode"}, "b": {"node_type": "IHACRESNode"}})

    def test_unknown_node_type(self):
        with pytest.raises(ConfigurationError, match="Unknown node type"):
            build({"a": {"node_type": "SacramentoNode"}})

    def test_out_of_bounds_parameter(self):
        with pytest.raises(BoundViolationError):
            build({"a": {"node_type": "IHACRESNode", "parameters": {"d": 5000.0}}})

    def test_from_nodes(self):
        network = StreamNetwork.from_nodes([make_ihacres("a"), make_ihacres("b")], [("a", "b")])

        assert network.terminal == "b"
        assert inlets(network, "b") == {"a"}
