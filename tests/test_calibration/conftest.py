import numpy as np
import pytest

from catchflow.climate import Climate
from catchflow.execution import run_node
from catchflow.network import StreamNetwork
from catchflow.testing import make_chain, make_climate, make_ihacres

N_STEPS = 80


def two_catchments() -> StreamNetwork:
    return make_chain(make_ihacres("upper", area=120.0), make_ihacres("lower", area=60.0), name="calib")


@pytest.fixture
def calib_climate() -> Climate:
    rng = np.random.default_rng(11)
    rain = np.where(rng.random(N_STEPS) < 0.35, rng.gamma(2.0, 9.0, N_STEPS), 0.0)
    return make_climate("upper", "lower", n=N_STEPS, rainfall=rain, evaporation=2.5)


@pytest.fixture
def network() -> StreamNetwork:
    return two_catchments()


@pytest.fixture
def observed(calib_climate: Climate) -> dict[str, np.ndarray]:
    """Outflows simulated with default parameters, used as synthetic observations."""
    truth = two_catchments()
    run_node(truth, "lower", calib_climate)
    return {node_id: np.asarray(truth.get_node(node_id).outflow) for node_id in ("upper", "lower")}


@pytest.fixture
def fresh_network() -> StreamNetwork:
    return two_catchments()
