import math
from collections.abc import Sequence
from typing import ClassVar

import numpy as np

from catchflow.errors import BoundViolationError, ParameterError

ParamBounds = tuple[float, float]


class LossReason(str):
    """A typed string representing a loss reason."""

    __slots__ = ()


EVAPORATION = LossReason("evaporation")
SEEPAGE = LossReason("seepage")


def summarize_losses(events: list) -> dict[str, float]:
    """Group losses by reason."""
    totals: dict[str, float] = {}
    for e in events:
        totals[e.reason] = totals.get(e.reason, 0) + e.amount
    return totals


class Parameterized:
    """Mixin for models with a calibratable parameter vector.

    Concrete models should:
    1. Inherit from Parameterized
    2. Be dataclasses holding each parameter as a float field
    3. Declare __params__ listing calibratable field names in vector order
    4. Declare __bounds__ for every name in __params__
    """

    __params__: ClassVar[tuple[str, ...]] = ()
    __bounds__: ClassVar[dict[str, ParamBounds]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        missing = set(cls.__params__) - set(cls.__bounds__)
        if missing:
            raise TypeError(f"{cls.__name__}: __bounds__ missing for params: {missing}")
        unknown = set(cls.__bounds__) - set(cls.__params__)
        if unknown:
            raise TypeError(f"{cls.__name__}: __bounds__ references unknown params: {unknown}")
        for name, (lo, hi) in cls.__bounds__.items():
            if lo > hi:
                raise TypeError(f"{cls.__name__}: lower bound exceeds upper bound for '{name}'")

    def _check_params(self) -> None:
        """Validate current parameter values against bounds."""
        for name in self.__params__:
            value = getattr(self, name)
            lo, hi = self.__bounds__[name]
            if not (lo <= value <= hi):
                raise BoundViolationError(name, value, (lo, hi))

    def params(self) -> dict[str, float]:
        """Return current parameter values."""
        return {name: getattr(self, name) for name in self.__params__}

    def parameter_bounds(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (current values, lower bounds, upper bounds) in __params__ order."""
        values = np.array([getattr(self, name) for name in self.__params__], dtype=np.float64)
        lower = np.array([self.__bounds__[name][0] for name in self.__params__], dtype=np.float64)
        upper = np.array([self.__bounds__[name][1] for name in self.__params__], dtype=np.float64)
        return values, lower, upper

    def update_parameters(self, vector: Sequence[float]) -> None:
        """Replace all parameter values from a vector.

        The vector is validated as a whole before anything is assigned, so a
        rejected vector leaves the current parameters untouched.

        Raises:
            ParameterError: If the vector length does not match __params__ or a
                value is not finite.
            BoundViolationError: If a value lies outside its declared bounds.
        """
        values = [float(v) for v in vector]
        if len(values) != len(self.__params__):
            raise ParameterError(
                f"{type(self).__name__} expects {len(self.__params__)} parameters, got {len(values)}"
            )
        for name, value in zip(self.__params__, values, strict=True):
            if not math.isfinite(value):
                raise ParameterError(f"Parameter '{name}' must be finite, got {value}")
            lo, hi = self.__bounds__[name]
            if not (lo <= value <= hi):
                raise BoundViolationError(name, value, (lo, hi))
        for name, value in zip(self.__params__, values, strict=True):
            setattr(self, name, value)
