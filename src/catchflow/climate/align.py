"""Alignment of date-indexed series to their shared period.

Forcing, observed and water-order tables usually cover different periods. The
network only runs over a single date range, so every table handed to it must
first be sliced to the dates they all cover.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from catchflow.errors import DataAlignmentError

DateIndexed = pd.DataFrame | pd.Series


def _dates(data: DateIndexed, date_column: str) -> pd.DatetimeIndex:
    if isinstance(data, pd.DataFrame) and date_column in data.columns:
        return pd.DatetimeIndex(pd.to_datetime(data[date_column]))
    if isinstance(data.index, pd.DatetimeIndex):
        return data.index
    raise DataAlignmentError(f"Series must have a '{date_column}' column or a DatetimeIndex")


def find_common_timeframe(*timeseries: DateIndexed, date_column: str = "Date") -> tuple[pd.Timestamp, pd.Timestamp]:
    """Find the first and last dates covered by every series.

    Raises:
        DataAlignmentError: If no series is given, a series is empty, or the
            series do not overlap.
    """
    if not timeseries:
        raise DataAlignmentError("At least one time series is required")

    starts: list[pd.Timestamp] = []
    ends: list[pd.Timestamp] = []
    for i, data in enumerate(timeseries):
        dates = _dates(data, date_column)
        if len(dates) == 0:
            raise DataAlignmentError(f"Time series {i} is empty")
        starts.append(dates.min())
        ends.append(dates.max())

    start, end = max(starts), min(ends)
    if start > end:
        raise DataAlignmentError(f"Time series do not overlap (latest start {start.date()}, earliest end {end.date()})")
    return start, end


def align_time_frame(*timeseries: DateIndexed, date_column: str = "Date") -> tuple[DateIndexed, ...]:
    """Subset any number of series to their shared period.

    Returns copies in the same order as the input, each keeping its original
    row order. Frames with a date column get a fresh positional index.
    Re-applying to already aligned data returns equal data.

    Example:
        >>> climate_data, levels = align_time_frame(climate_data, levels)
    """
    start, end = find_common_timeframe(*timeseries, date_column=date_column)

    aligned: list[DateIndexed] = []
    for data in timeseries:
        dates = _dates(data, date_column)
        mask = (dates >= start) & (dates <= end)
        subset = data.loc[np.asarray(mask)].copy()
        if isinstance(subset, pd.DataFrame) and date_column in subset.columns:
            subset = subset.reset_index(drop=True)
        aligned.append(subset)
    return tuple(aligned)
