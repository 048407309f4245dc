# src/decomposition.py
"""
Trend/seasonality decomposition forecaster (Prophet).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import pandas as pd
from prophet import Prophet

from src.align import FORECAST_COLUMNS
from src.data import validate_price_series
from src.errors import InvalidInputError, TrainingError

logger = logging.getLogger(__name__)


class DecompositionForecaster(ABC):
    @abstractmethod
    def fit(self, prices: pd.Series) -> "DecompositionForecaster":
        ...

    @abstractmethod
    def predict(self, horizon: int) -> pd.DataFrame:
        """Return a date-indexed frame with columns forecast, upper, lower."""


class ProphetForecaster(DecompositionForecaster):
    def __init__(
        self,
        yearly_seasonality: bool = True,
        weekly_seasonality: bool = True,
        daily_seasonality: bool = False,
        interval_width: float = 0.8,
    ):
        self.yearly_seasonality = yearly_seasonality
        self.weekly_seasonality = weekly_seasonality
        self.daily_seasonality = daily_seasonality
        self.interval_width = interval_width
        self.model = None

    def fit(self, prices: pd.Series) -> "ProphetForecaster":
        prices = validate_price_series(prices)
        frame = pd.DataFrame({"ds": prices.index, "y": prices.to_numpy(dtype=float)})

        model = Prophet(
            yearly_seasonality=self.yearly_seasonality,
            weekly_seasonality=self.weekly_seasonality,
            daily_seasonality=self.daily_seasonality,
            interval_width=self.interval_width,
        )
        try:
            model.fit(frame)
        except Exception as e:
            raise TrainingError(f"Prophet failed to fit: {e}") from e

        logger.info("Fitted Prophet on %d observations", len(frame))
        self.model = model
        return self

    def predict(self, horizon: int) -> pd.DataFrame:
        if self.model is None:
            raise RuntimeError("ProphetForecaster.predict called before fit.")
        if horizon < 1:
            raise InvalidInputError(f"horizon must be >= 1, got {horizon}")

        try:
            future = self.model.make_future_dataframe(
                periods=horizon, freq="D", include_history=False
            )
            raw = self.model.predict(future)
        except Exception as e:
            raise TrainingError(f"Prophet failed to predict: {e}") from e

        out = pd.DataFrame(
            raw[["yhat", "yhat_upper", "yhat_lower"]].to_numpy(dtype=float),
            columns=FORECAST_COLUMNS,
            index=pd.DatetimeIndex(raw["ds"], name="date"),
        )
        return out
