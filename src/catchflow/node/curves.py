"""Storage relations mapping reservoir volume to water level and surface area."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np
import pandas as pd
from scipy.interpolate import interp1d

from catchflow.errors import ConfigurationError


@runtime_checkable
class StorageCurve(Protocol):
    def level(self, volume: float) -> float: ...

    def area(self, volume: float) -> float: ...


@dataclass(frozen=True)
class TabulatedCurve:
    """Surveyed volume (ML) / level (m) / surface area (km²) table.

    Values between survey points are linearly interpolated; volumes outside the
    surveyed range are held at the first or last entry.
    """

    volumes: tuple[float, ...]
    levels: tuple[float, ...]
    areas: tuple[float, ...] | None = None
    _volume_to_level: interp1d = field(init=False, repr=False, compare=False)
    _volume_to_area: interp1d | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        volumes = np.asarray(self.volumes, dtype=np.float64)
        levels = np.asarray(self.levels, dtype=np.float64)
        if volumes.ndim != 1 or len(volumes) < 2:
            raise ConfigurationError("Storage curve needs at least two volume entries")
        if levels.shape != volumes.shape:
            raise ConfigurationError("Storage curve volumes and levels must have the same length")
        if np.any(np.diff(volumes) <= 0):
            raise ConfigurationError("Storage curve volumes must be strictly increasing")
        if np.any(np.diff(levels) < 0):
            raise ConfigurationError("Storage curve levels must not decrease with volume")

        object.__setattr__(self, "volumes", tuple(volumes.tolist()))
        object.__setattr__(self, "levels", tuple(levels.tolist()))
        object.__setattr__(self, "_volume_to_level", _interpolator(volumes, levels))

        if self.areas is None:
            object.__setattr__(self, "_volume_to_area", None)
            return
        areas = np.asarray(self.areas, dtype=np.float64)
        if areas.shape != volumes.shape:
            raise ConfigurationError("Storage curve volumes and areas must have the same length")
        if np.any(areas < 0):
            raise ConfigurationError("Storage curve areas cannot be negative")
        object.__setattr__(self, "areas", tuple(areas.tolist()))
        object.__setattr__(self, "_volume_to_area", _interpolator(volumes, areas))

    @classmethod
    def from_frame(
        cls,
        data: pd.DataFrame,
        volume_col: str = "v",
        level_col: str = "h",
        area_col: str | None = "a",
    ) -> TabulatedCurve:
        """Build a curve from a survey table, sorted by volume."""
        required = [volume_col, level_col]
        missing = [col for col in required if col not in data.columns]
        if missing:
            raise ConfigurationError(f"Missing required columns: {missing}")

        df = data.sort_values(volume_col).drop_duplicates(subset=[volume_col])
        areas = None
        if area_col is not None and area_col in df.columns:
            areas = tuple(df[area_col].astype(float))
        return cls(volumes=tuple(df[volume_col].astype(float)), levels=tuple(df[level_col].astype(float)), areas=areas)

    def level(self, volume: float) -> float:
        return float(self._volume_to_level(volume))

    def area(self, volume: float) -> float:
        if self._volume_to_area is None:
            return 0.0
        return float(self._volume_to_area(volume))


def _interpolator(x: np.ndarray, y: np.ndarray) -> interp1d:
    return interp1d(x, y, kind="linear", bounds_error=False, fill_value=(y[0], y[-1]), assume_sorted=True)


@dataclass(frozen=True, slots=True)
class PowerCurve:
    """Geometric approximation for reservoirs without a survey.

    ``level = base_level + (full_level - base_level) * (v / max_volume) ** exponent``
    and surface area scales as ``full_area * (v / max_volume) ** (2 / 3)``.
    """

    max_volume: float  # ML
    full_level: float  # m
    base_level: float = 0.0  # m
    full_area: float = 0.0  # km²
    exponent: float = 0.5

    def __post_init__(self) -> None:
        if self.max_volume <= 0:
            raise ConfigurationError("max_volume must be positive")
        if self.full_level < self.base_level:
            raise ConfigurationError("full_level cannot be below base_level")
        if self.full_area < 0:
            raise ConfigurationError("full_area cannot be negative")
        if self.exponent <= 0:
            raise ConfigurationError("exponent must be positive")

    def _fraction(self, volume: float) -> float:
        return min(max(volume / self.max_volume, 0.0), 1.0)

    def level(self, volume: float) -> float:
        return self.base_level + (self.full_level - self.base_level) * self._fraction(volume) ** self.exponent

    def area(self, volume: float) -> float:
        return self.full_area * self._fraction(volume) ** (2.0 / 3.0)
