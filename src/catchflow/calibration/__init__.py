from .calibrate import calibrate, calibrate_network
from .objective import CalibrationObjective, make_objective
from .result import CalibrationResult

__all__ = [
    "CalibrationObjective",
    "CalibrationResult",
    "calibrate",
    "calibrate_network",
    "make_objective",
]
