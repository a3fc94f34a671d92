from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from catchflow.errors import DataAlignmentError


@dataclass(frozen=True, slots=True)
class ClimateStep:
    """Forcing values for one gauge at one timestep.

    Either evaporation or temperature may be absent, never both.
    """

    rainfall: float  # mm
    evaporation: float | None = None  # mm
    temperature: float | None = None  # degrees C


def _read_only(values: pd.Series) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.flags.writeable = False
    return arr


def _dates_of(data: pd.DataFrame, date_column: str) -> pd.DatetimeIndex:
    if date_column in data.columns:
        return pd.DatetimeIndex(pd.to_datetime(data[date_column]))
    if isinstance(data.index, pd.DatetimeIndex):
        return data.index
    raise DataAlignmentError(f"Climate data needs a '{date_column}' column or a DatetimeIndex")


@dataclass(frozen=True, eq=False)
class Climate:
    """Immutable, date-indexed rainfall and evapotranspiration/temperature series.

    Series are looked up by gauge (node) identifier using column suffixes, so a
    frame with columns ``Date, 406214_rain, 406214_evap`` provides forcing for
    node ``406214``. The frame is copied on construction and every series is
    exposed as a read-only array, so one instance can be shared by any number
    of nodes, networks and workers.
    """

    data: pd.DataFrame = field(repr=False)
    rainfall_suffix: str = "_rain"
    evaporation_suffix: str = "_evap"
    temperature_suffix: str = "_temp"
    date_column: str = "Date"
    _dates: pd.DatetimeIndex = field(init=False, repr=False)
    _rainfall: dict[str, np.ndarray] = field(init=False, repr=False)
    _evaporation: dict[str, np.ndarray] = field(init=False, repr=False)
    _temperature: dict[str, np.ndarray] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        data = self.data.copy()
        dates = _dates_of(data, self.date_column)
        if len(dates) == 0:
            raise DataAlignmentError("Climate data cannot be empty")
        if not dates.is_monotonic_increasing or dates.has_duplicates:
            raise DataAlignmentError("Climate dates must be strictly increasing")

        rainfall = self._collect(data, self.rainfall_suffix)
        evaporation = self._collect(data, self.evaporation_suffix)
        temperature = self._collect(data, self.temperature_suffix)
        if not rainfall:
            raise DataAlignmentError(f"Climate data has no rainfall columns (suffix '{self.rainfall_suffix}')")

        for series in (*rainfall.values(), *evaporation.values()):
            if np.any(series[np.isfinite(series)] < 0):
                raise DataAlignmentError("Rainfall and evaporation cannot be negative")

        object.__setattr__(self, "data", data)
        object.__setattr__(self, "_dates", dates)
        object.__setattr__(self, "_rainfall", rainfall)
        object.__setattr__(self, "_evaporation", evaporation)
        object.__setattr__(self, "_temperature", temperature)

    @staticmethod
    def _collect(data: pd.DataFrame, suffix: str) -> dict[str, np.ndarray]:
        return {
            str(col)[: -len(suffix)]: _read_only(data[col])
            for col in data.columns
            if isinstance(col, str) and col.endswith(suffix) and len(col) > len(suffix)
        }

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self._dates

    @property
    def n_timesteps(self) -> int:
        return len(self._dates)

    def __len__(self) -> int:
        return len(self._dates)

    def gauges(self) -> list[str]:
        return sorted(self._rainfall)

    def has_gauge(self, gauge_id: str) -> bool:
        return gauge_id in self._rainfall and (gauge_id in self._evaporation or gauge_id in self._temperature)

    def check_gauge(self, gauge_id: str) -> None:
        """Raise if the gauge lacks rainfall or both evaporation and temperature."""
        if gauge_id not in self._rainfall:
            raise DataAlignmentError(f"No rainfall series for gauge '{gauge_id}'")
        if gauge_id not in self._evaporation and gauge_id not in self._temperature:
            raise DataAlignmentError(f"No evaporation or temperature series for gauge '{gauge_id}'")

    def rainfall(self, gauge_id: str) -> np.ndarray:
        self.check_gauge(gauge_id)
        return self._rainfall[gauge_id]

    def evaporation(self, gauge_id: str) -> np.ndarray | None:
        self.check_gauge(gauge_id)
        return self._evaporation.get(gauge_id)

    def temperature(self, gauge_id: str) -> np.ndarray | None:
        self.check_gauge(gauge_id)
        return self._temperature.get(gauge_id)

    def at(self, gauge_id: str, t: int) -> ClimateStep:
        """Return forcing for a gauge at timestep ``t``.

        Raises:
            DataAlignmentError: If the gauge is unknown, ``t`` lies outside the
                date range, or a required value is missing (NaN).
        """
        self.check_gauge(gauge_id)
        if not 0 <= t < len(self._dates):
            raise DataAlignmentError(f"Timestep {t} outside climate range [0, {len(self._dates)})")

        rain = float(self._rainfall[gauge_id][t])
        evap = float(self._evaporation[gauge_id][t]) if gauge_id in self._evaporation else None
        temp = float(self._temperature[gauge_id][t]) if gauge_id in self._temperature else None

        if not math.isfinite(rain):
            raise DataAlignmentError(f"Missing rainfall for gauge '{gauge_id}' at timestep {t}")
        if evap is not None and not math.isfinite(evap):
            raise DataAlignmentError(f"Missing evaporation for gauge '{gauge_id}' at timestep {t}")
        if evap is None and temp is not None and not math.isfinite(temp):
            raise DataAlignmentError(f"Missing temperature for gauge '{gauge_id}' at timestep {t}")
        return ClimateStep(rainfall=rain, evaporation=evap, temperature=temp)

    def between(self, start: str | pd.Timestamp, end: str | pd.Timestamp) -> Climate:
        """Return a new Climate restricted to ``[start, end]`` (inclusive)."""
        mask = (self._dates >= pd.Timestamp(start)) & (self._dates <= pd.Timestamp(end))
        if not mask.any():
            raise DataAlignmentError(f"No climate data between {start} and {end}")
        subset = self.data.loc[np.asarray(mask)]
        if self.date_column in subset.columns:
            subset = subset.reset_index(drop=True)
        return Climate(
            data=subset,
            rainfall_suffix=self.rainfall_suffix,
            evaporation_suffix=self.evaporation_suffix,
            temperature_suffix=self.temperature_suffix,
            date_column=self.date_column,
        )
