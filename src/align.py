# src/align.py
"""
Merge actual closes with the decomposition and LSTM forecasts into one
date-indexed table for charting.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np
import pandas as pd

from config import DISPLAY_WINDOW_DAYS
from src.errors import InvalidInputError

ACTUAL = "actual"
PRIMARY = "forecast_primary"
PRIMARY_UPPER = "forecast_primary_upper"
PRIMARY_LOWER = "forecast_primary_lower"
SECONDARY = "forecast_secondary"

# columns of a decomposition forecast frame
FORECAST_COLUMNS = ["forecast", "upper", "lower"]


def _date_index(index, label: str) -> pd.DatetimeIndex:
    idx = pd.DatetimeIndex(index)
    if idx.tz is not None:
        idx = idx.tz_localize(None)
    idx = idx.normalize()
    if idx.has_duplicates:
        dupes = idx[idx.duplicated()].strftime("%Y-%m-%d").tolist()
        raise InvalidInputError(f"Duplicate dates in {label}: {dupes[:5]}")
    return idx


def _as_date(value) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tz is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def outer_join(columns: Dict[str, pd.Series]) -> pd.DataFrame:
    """
    Outer-join named series on exact calendar dates.
    Cells with no value on a date hold <NA>.
    """
    parts = []
    for name, series in columns.items():
        s = pd.Series(
            pd.array(series.to_numpy(dtype=float, na_value=np.nan), dtype="Float64"),
            index=_date_index(series.index, name),
            name=name,
        )
        parts.append(s)

    table = pd.concat(parts, axis=1, join="outer").sort_index()
    table.index.name = "date"
    return table.astype("Float64")


def align(
    actual: pd.Series,
    primary: pd.DataFrame,
    secondary: Optional[pd.Series] = None,
    forecast_start=None,
    display_window_days: int = DISPLAY_WINDOW_DAYS,
) -> pd.DataFrame:
    """
    Build the chart table: actual, forecast_primary(+upper/lower)[, forecast_secondary].

    Forecast columns are blanked on every row that has an actual value, and
    rows earlier than `forecast_start - display_window_days` are dropped.
    `forecast_start` defaults to the first forecast date.
    """
    missing = [c for c in FORECAST_COLUMNS if c not in primary.columns]
    if missing:
        raise InvalidInputError(f"Primary forecast is missing columns: {missing}")
    if display_window_days < 0:
        raise InvalidInputError("display_window_days must not be negative")

    columns = {
        ACTUAL: actual,
        PRIMARY: primary["forecast"],
        PRIMARY_UPPER: primary["upper"],
        PRIMARY_LOWER: primary["lower"],
    }
    if secondary is not None:
        columns[SECONDARY] = secondary

    table = outer_join(columns)
    forecast_cols = [c for c in table.columns if c != ACTUAL]
    table.loc[table[ACTUAL].notna(), forecast_cols] = pd.NA

    if forecast_start is None:
        starts = [primary.index.min()]
        if secondary is not None and len(secondary):
            starts.append(secondary.index.min())
        starts = [_as_date(s) for s in starts if not pd.isna(s)]
        if not starts:
            return table
        forecast_start = min(starts)

    cutoff = _as_date(forecast_start) - pd.Timedelta(days=display_window_days)
    return table.loc[table.index >= cutoff]
