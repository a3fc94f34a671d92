"""
catchflow

Network-aware simulation of catchment runoff and reservoir storage, with the
scoring and objective layer needed to calibrate it against observed data.

Streams are trees of nodes: rainfall-runoff catchments (IHACRES) and dams.
A node is evaluated one timestep at a time, and evaluating a node first pulls
every upstream node to the same timestep, so running the most downstream node
runs the whole network.

Classes:
    StreamNetwork: Directed tree of nodes built from a topology mapping.
    IHACRESNode: Lumped rainfall-runoff model with quick and slow flow stores.
    DamNode: Reservoir mass balance with spill, seepage and evaporation.
    Climate: Immutable per-gauge rainfall, evaporation and temperature series.
    CalibrationObjective: Parameter vector -> scalar for an external optimizer.
"""

from .calibration import CalibrationObjective, CalibrationResult, calibrate, calibrate_network, make_objective
from .climate import Climate, ClimateStep, align_time_frame, find_common_timeframe
from .errors import BoundViolationError, ConfigurationError, DataAlignmentError, ParameterError, SimulationError
from .execution import run_catchment, run_node, run_single_node, run_step
from .network import StreamNetwork, build, get_node, inlets, outlets
from .node import DamNode, IHACRESNode, NetworkNode, PowerCurve, TabulatedCurve

__all__ = [
    "BoundViolationError",
    "CalibrationObjective",
    "CalibrationResult",
    "Climate",
    "ClimateStep",
    "ConfigurationError",
    "DamNode",
    "DataAlignmentError",
    "IHACRESNode",
    "NetworkNode",
    "ParameterError",
    "PowerCurve",
    "SimulationError",
    "StreamNetwork",
    "TabulatedCurve",
    "align_time_frame",
    "build",
    "calibrate",
    "calibrate_network",
    "find_common_timeframe",
    "get_node",
    "inlets",
    "make_objective",
    "outlets",
    "run_catchment",
    "run_node",
    "run_single_node",
    "run_step",
]

# Package version
__version__ = "0.1.0"
