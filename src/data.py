# src/data.py

import logging
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd
import yfinance as yf

from src.errors import DataUnavailableError, InvalidInputError

logger = logging.getLogger(__name__)


# ---------- Data loading ----------

def load_data(stock_symbol: str, start_date: str, end_date: str) -> pd.Series:
    """
    Download daily closes for the given symbol and date range.
    Returns a float Series on a sorted, tz-naive DatetimeIndex with no NaNs.
    """
    try:
        df = yf.download(
            stock_symbol,
            start=start_date,
            end=end_date,
            auto_adjust=False,
            progress=False,
        )
    except Exception as e:
        raise DataUnavailableError(f"Download failed for {stock_symbol}: {e}") from e

    if df is None or len(df) == 0:
        raise DataUnavailableError(
            f"No data found for {stock_symbol} between {start_date} and {end_date}."
        )

    # Normalize MultiIndex columns if present
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    if "Close" not in df.columns:
        raise DataUnavailableError(f"Missing 'Close' column in data for {stock_symbol}.")

    close = df["Close"]
    if isinstance(close, pd.DataFrame):
        close = close.iloc[:, 0]

    close = close.astype(float).dropna().sort_index()
    close.index = pd.DatetimeIndex(close.index)
    if close.index.tz is not None:
        close.index = close.index.tz_localize(None)
    close = close[~close.index.duplicated(keep="last")]
    close.index.name = "date"
    close.name = "Close"

    if close.empty:
        raise DataUnavailableError(f"Only missing values returned for {stock_symbol}.")

    logger.info(
        "Loaded %d closes for %s (%s to %s)",
        len(close), stock_symbol, close.index[0].date(), close.index[-1].date(),
    )
    return close


def validate_price_series(prices: pd.Series) -> pd.Series:
    if prices is None or len(prices) == 0:
        raise InvalidInputError("Price series is empty.")
    if not isinstance(prices.index, pd.DatetimeIndex):
        raise InvalidInputError("Price series must be indexed by dates.")
    if not prices.index.is_monotonic_increasing or prices.index.has_duplicates:
        raise InvalidInputError("Price dates must be strictly increasing.")
    values = prices.to_numpy(dtype=float)
    if np.isnan(values).any():
        raise InvalidInputError("Price series contains missing values; drop them first.")
    if (values <= 0).any():
        raise InvalidInputError("Prices must be positive.")
    return prices


# ---------- Normalization ----------

@dataclass(frozen=True)
class NormalizationParams:
    mean: float
    std: float


def fit_normalization(values) -> NormalizationParams:
    """
    Mean and sample standard deviation of `values`.
    """
    arr = np.asarray(values, dtype=float).ravel()
    if arr.size == 0:
        raise InvalidInputError("Cannot fit normalization on an empty series.")
    if arr.size < 2:
        raise InvalidInputError("Need at least two values to estimate a standard deviation.")

    mean = float(arr.mean())
    std = float(arr.std(ddof=1))
    if not math.isfinite(std) or std <= 0.0:
        raise InvalidInputError("Series has zero variance; cannot normalize.")
    return NormalizationParams(mean=mean, std=std)


def normalize(values, params: NormalizationParams):
    return (values - params.mean) / params.std


def denormalize(values, params: NormalizationParams):
    return values * params.std + params.mean


# ---------- LSTM data prep (univariate on Close) ----------

def build_windows(values, time_step: int):
    """
    Slice `values` into (X, y) pairs: X[i] = values[i:i+time_step], y[i] = values[i+time_step].
    X has shape (n, time_step), y has shape (n,), with n = len(values) - time_step.
    """
    if time_step < 1:
        raise InvalidInputError(f"time_step must be >= 1, got {time_step}")

    data = np.asarray(values, dtype=float).ravel()
    if len(data) < time_step + 1:
        raise InvalidInputError(
            f"Need at least {time_step + 1} points to build one window of {time_step}, "
            f"got {len(data)}."
        )

    X, y = [], []
    for i in range(time_step, len(data)):
        X.append(data[i - time_step:i])
        y.append(data[i])
    return np.array(X), np.array(y)


def train_test_split_series(X, y, train_fraction: float = 0.8):
    """
    Chronological split; no shuffling.
    """
    if not 0.0 < train_fraction < 1.0:
        raise InvalidInputError(f"train_fraction must be in (0, 1), got {train_fraction}")
    if len(X) != len(y):
        raise InvalidInputError(f"X and y differ in length: {len(X)} vs {len(y)}")

    # strip float noise before flooring (0.29 * 100 -> 29)
    split_idx = math.floor(round(train_fraction * len(X), 9))
    X_train, X_test = X[:split_idx], X[split_idx:]
    y_train, y_test = y[:split_idx], y[split_idx:]
    return X_train, X_test, y_train, y_test


# ---------- For future forecasting ----------

def get_last_window(normalized_values, time_step: int) -> np.ndarray:
    """
    Return the last `time_step` normalized values as a 1D seed window.
    """
    data = np.asarray(normalized_values, dtype=float).ravel()
    if len(data) < time_step:
        raise InvalidInputError(
            f"Not enough data to build a {time_step}-step window (have {len(data)})."
        )
    return data[-time_step:].copy()


def future_dates(last_date, horizon: int) -> pd.DatetimeIndex:
    """
    Contiguous calendar days starting the day after `last_date`.
    """
    start = pd.Timestamp(last_date).normalize() + pd.Timedelta(days=1)
    return pd.date_range(start=start, periods=horizon, freq="D", name="date")
