import numpy as np
import pytest

from catchflow.calibration import CalibrationObjective, make_objective
from catchflow.climate import ClimateStep
from catchflow.errors import BoundViolationError, ConfigurationError, DataAlignmentError
from catchflow.execution import run_catchment, run_node
from catchflow.metrics import nnse, rmse
from catchflow.node import IHACRESNode

DEFAULTS = [200.0, 20.0, 1.0, 0.8, 2.5, 50.0, 0.7]
OTHER = [120.0, 40.0, 0.6, 1.5, 6.0, 150.0, 0.3]


class TestObjectiveValue:
    def test_perfect_parameters_give_zero(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"])

        assert objective(DEFAULTS) == pytest.approx(0.0, abs=1e-12)

    def test_value_is_one_minus_score(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"])

        value = objective(OTHER)

        assert value == pytest.approx(1.0 - objective.score(OTHER))
        assert 0.0 < value < 1.0

    def test_minimize_metric_returned_as_is(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"], metric=rmse)

        assert objective.direction == "minimize"
        assert objective(DEFAULTS) == pytest.approx(0.0, abs=1e-9)
        assert objective(OTHER) == pytest.approx(objective.score(OTHER))
        assert objective(OTHER) > 0.0

    def test_unregistered_metric_defaults_to_maximize(self, network, calib_climate, observed):
        def share_of_volume(obs, sim):
            return float(np.sum(sim) / np.sum(obs))

        objective = make_objective(network, "upper", calib_climate, observed["upper"], metric=share_of_volume)

        assert objective.direction == "maximize"
        assert objective(DEFAULTS) == pytest.approx(0.0)

    def test_non_finite_score_is_infinite(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"], metric=lambda o, s: np.nan)

        assert objective(DEFAULTS) == np.inf

    def test_repeated_calls_identical(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"])

        values = [objective(OTHER) for _ in range(3)]

        assert values[0] == values[1] == values[2]


class TestObjectiveReset:
    def test_network_reset_after_call(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"])

        objective(OTHER)

        for node in network.nodes.values():
            assert node.timestep == 0
            assert node.events == []
        assert network.get_node("upper").state.wetness == 0.0

    def test_parameters_kept_after_call(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"])

        objective(OTHER)

        assert list(network.get_node("upper").params().values()) == OTHER

    def test_reset_when_simulation_fails(self, network, calib_climate, observed):
        exchange = np.zeros(len(observed["upper"]))
        exchange[40] = np.nan
        objective = make_objective(network, "upper", calib_climate, observed["upper"], exchange={"upper": exchange})

        with pytest.raises(DataAlignmentError, match="Missing exchange value for node 'upper' at timestep 40"):
            objective(OTHER)

        assert network.get_node("upper").timestep == 0
        assert network.get_node("upper").events == []

    def test_previous_run_does_not_leak_into_call(self, network, fresh_network, calib_climate, observed):
        fresh = make_objective(fresh_network, "upper", calib_climate, observed["upper"])
        objective = make_objective(network, "upper", calib_climate, observed["upper"])
        run_catchment(network, calib_climate)

        assert objective(OTHER) == pytest.approx(fresh(OTHER))
        assert objective(OTHER) > 0.0

    def test_manually_stepped_node_starts_over(self, network, calib_climate, observed):
        network.get_node("upper").step(ClimateStep(rainfall=5.0, evaporation=1.0))
        objective = make_objective(network, "upper", calib_climate, observed["upper"])

        assert objective(DEFAULTS) == pytest.approx(0.0, abs=1e-12)
        assert network.get_node("upper").timestep == 0

    def test_out_of_bounds_parameters_rejected(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"])
        bad = list(DEFAULTS)
        bad[6] = 1.5

        with pytest.raises(BoundViolationError, match="alpha"):
            objective(bad)

        assert network.get_node("upper").alpha == 0.7
        assert network.get_node("upper").timestep == 0


class TestObjectiveOutput:
    def test_upstream_node_scored_at_outlet(self, network, calib_climate, observed):
        objective = make_objective(
            network, "upper", calib_climate, observed["lower"], output_node_id="lower"
        )

        assert objective.target == "lower"
        assert objective(DEFAULTS) == pytest.approx(0.0, abs=1e-12)
        assert objective(OTHER) > 0.0

    def test_other_output_series(self, network, calib_climate, observed):
        truth = network.copy()
        truth.get_node("upper").update_parameters(OTHER)
        run_node(truth, "upper", calib_climate)
        wetness = np.asarray(truth.get_node("upper").wetness)

        objective = make_objective(network, "upper", calib_climate, wetness, output="wetness", metric=rmse)

        assert objective(OTHER) == pytest.approx(0.0, abs=1e-9)

    def test_warmup_skips_leading_timesteps(self, network, calib_climate, observed):
        objective = make_objective(network, "upper", calib_climate, observed["upper"][10:], warmup=10)

        assert len(objective.simulate(OTHER)) == len(observed["upper"]) - 10
        network.reset()
        assert objective(DEFAULTS) == pytest.approx(0.0, abs=1e-12)


class TestObjectiveValidation:
    def test_observed_length_mismatch(self, network, calib_climate, observed):
        with pytest.raises(DataAlignmentError, match="Observed series has 79 values, expected 80"):
            make_objective(network, "upper", calib_climate, observed["upper"][1:])

    def test_observed_length_with_warmup(self, network, calib_climate, observed):
        with pytest.raises(DataAlignmentError, match="expected 75"):
            make_objective(network, "upper", calib_climate, observed["upper"], warmup=5)

    def test_negative_warmup(self, network, calib_climate, observed):
        with pytest.raises(DataAlignmentError, match="warmup cannot be negative"):
            make_objective(network, "upper", calib_climate, observed["upper"], warmup=-1)

    def test_node_must_drain_to_output(self, network, calib_climate, observed):
        with pytest.raises(ConfigurationError, match="does not drain to output node 'upper'"):
            make_objective(network, "lower", calib_climate, observed["upper"], output_node_id="upper")

    def test_unknown_output_series(self, network, calib_climate, observed):
        with pytest.raises(ConfigurationError, match="no output series 'discharge'"):
            make_objective(network, "upper", calib_climate, observed["upper"], output="discharge")

    def test_unknown_node(self, network, calib_climate, observed):
        with pytest.raises(ConfigurationError, match="not in network"):
            make_objective(network, "missing", calib_climate, observed["upper"])

    def test_dataclass_construction(self, network, calib_climate, observed):
        objective = CalibrationObjective(
            network=network, node_id="upper", climate=calib_climate, observed=list(observed["upper"])
        )

        assert objective.metric is nnse
        assert objective.direction == "maximize"
        assert isinstance(objective.observed, np.ndarray)
        assert len(IHACRESNode.__params__) == 7
