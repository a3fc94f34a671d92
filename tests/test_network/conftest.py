import pytest


@pytest.fixture
def campaspe_spec() -> dict:
    """Two tributaries joining above a dam, which drains to the outlet."""
    return {
        "Tributary A": {"node_type": "IHACRESNode", "node_id": "406214", "area": 268.77, "outlets": "406000"},
        "Tributary B": {"node_type": "IHACRESNode", "node_id": "406219", "area": 1985.73, "outlets": ["406000"]},
        "Lake Eppalock": {
            "node_type": "DamNode",
            "node_id": "406000",
            "inlets": ["406214", "406219"],
            "outlets": "406201",
            "max_store": 304_651.0,
        },
        "Outlet": {"node_type": "IHACRESNode", "node_id": "406201", "area": 1000.0, "inlets": ["406000"]},
    }
