import numpy as np
import pandas as pd
import pytest

from catchflow.errors import DataAlignmentError
from catchflow.execution import run_catchment, run_node
from catchflow.network import build
from catchflow.node import IHACRESNode, WaterReleased
from catchflow.testing import make_chain, make_climate, make_dam, make_ihacres


class TestRunNode:
    def test_runs_whole_period(self, chain, climate):
        outflow = run_node(chain, "mid", climate)

        assert len(outflow) == climate.n_timesteps
        assert chain.get_node("head").timestep == climate.n_timesteps
        assert chain.get_node("outlet").timestep == 0

    def test_returns_copy(self, chain, climate):
        outflow = run_node(chain, "outlet", climate)
        outflow[:] = -1.0

        assert min(chain.get_node("outlet").outflow) >= 0.0

    def test_missing_forcing_detected_before_running(self, climate):
        network = make_chain(make_ihacres("head"), make_ihacres("ungauged"))

        with pytest.raises(DataAlignmentError, match="No rainfall series for gauge 'ungauged'"):
            run_node(network, "ungauged", climate)
        assert network.get_node("head").timestep == 0

    def test_short_series_detected_before_running(self, chain, climate):
        with pytest.raises(DataAlignmentError, match="water_order series for node 'mid' has 3 values"):
            run_node(chain, "outlet", climate, water_order={"mid": [1.0, 2.0, 3.0]})
        assert chain.get_node("head").timestep == 0

    def test_water_order_from_frame(self, climate):
        n = climate.n_timesteps
        network = make_chain(make_ihacres("head"), make_dam("mid", initial_storage=800.0), make_ihacres("outlet"))
        orders = pd.DataFrame({"mid": np.full(n, 5.0)})
        run_catchment(network, climate, water_order=orders)

        dam = network.get_node("mid")
        released = sum(e.amount for e in dam.events_of_type(WaterReleased))
        assert released == pytest.approx(5.0 * n)

    def test_exchange_reaches_node(self, climate):
        n = climate.n_timesteps
        network = make_chain(make_dam("head", initial_storage=500.0), make_ihacres("outlet"))
        run_catchment(network, climate, exchange={"head": np.full(n, -2.0)})

        assert network.get_node("head").storage == pytest.approx(500.0 - 2.0 * n)


class TestRunCatchment:
    def test_runs_terminal(self, chain, climate):
        outflow = run_catchment(chain, climate)

        assert all(chain.get_node(n).timestep == climate.n_timesteps for n in chain)
        np.testing.assert_array_equal(outflow, chain.get_node("outlet").outflow)

    def test_second_run_without_reset_is_memoized(self, chain, climate):
        first = run_catchment(chain, climate)
        second = run_catchment(chain, climate)

        np.testing.assert_array_equal(first, second)
        assert chain.get_node("outlet").timestep == climate.n_timesteps

    def test_deterministic_after_reset(self, chain, climate):
        first = run_catchment(chain, climate)
        chain.reset()
        second = run_catchment(chain, climate)

        np.testing.assert_array_equal(first, second)

    def test_parameters_persist_across_reset(self, chain, climate):
        default = run_catchment(chain, climate)
        params = [350.0, 5.0, 0.6, 0.8, 1.5, 120.0, 0.9]

        chain.get_node("head").update_parameters(params)
        chain.reset()
        updated = run_catchment(chain, climate)

        assert chain.get_node("head").params()["d"] == 350.0
        assert not np.allclose(default, updated)

        fresh = make_chain(
            make_ihacres("head", area=150.0, **dict(zip(IHACRESNode.__params__, params, strict=True))),
            make_ihacres("mid", area=80.0),
            make_ihacres("outlet"),
        )
        np.testing.assert_array_equal(updated, run_catchment(fresh, climate))

    def test_tributaries_merge(self):
        climate = make_climate("406214", "406219", "406000", n=30, rainfall=12.0, evaporation=2.0)
        network = build(
            {
                "A": {"node_type": "IHACRESNode", "node_id": "406214", "area": 100.0, "outlets": "406000"},
                "B": {"node_type": "IHACRESNode", "node_id": "406219", "area": 50.0, "outlets": "406000"},
                "Dam": {
                    "node_type": "DamNode",
                    "node_id": "406000",
                    "max_store": 100.0,
                    "initial_storage": 100.0,
                    "parameters": {"storage_coef": 0.0},
                },
            }
        )
        outflow = run_catchment(network, climate)

        a = np.array(network.get_node("406214").outflow)
        b = np.array(network.get_node("406219").outflow)
        # full dam with no surface area spills everything it receives
        np.testing.assert_allclose(outflow, a + b)


class TestEndToEnd:
    def test_constant_forcing_headwater(self):
        climate = make_climate("catchment", n=100, rainfall=10.0, evaporation=2.0)
        node = make_ihacres("catchment")
        network = make_chain(node)

        outflow = run_catchment(network, climate)

        assert len(outflow) == 100
        assert np.all(np.isfinite(outflow))
        assert np.all(outflow >= 0.0)
        wetness = np.array(node.wetness)
        assert np.all((wetness >= 0.0) & (wetness <= node.d))
        assert np.all(np.diff(wetness) >= 0.0)
        assert np.all(np.array(node.quick_store) >= 0.0)
        assert np.all(np.array(node.slow_store) >= 0.0)
