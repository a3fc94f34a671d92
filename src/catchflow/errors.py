class ConfigurationError(Exception):
    """Raised when a network description cannot form a valid single-outlet tree."""


class DataAlignmentError(ValueError):
    """Raised when forcing or observed series do not cover the required timesteps."""


class ParameterError(ValueError):
    """Raised when a parameter vector cannot be applied to a node."""


class BoundViolationError(ParameterError):
    """Raised when a parameter value violates its declared bounds."""

    def __init__(self, param: str, value: float, bounds: tuple[float, float]):
        self.param = param
        self.value = value
        self.bounds = bounds
        lo, hi = bounds
        super().__init__(f"Parameter '{param}' value {value} outside bounds [{lo}, {hi}]")


class SimulationError(RuntimeError):
    """Raised when a node step would produce a non-finite value or runs out of order."""
