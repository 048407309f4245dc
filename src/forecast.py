# src/forecast.py
"""
LSTM forecast driver: normalize -> window -> split -> train -> predict
-> denormalize -> reassemble into a dated series.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd

from config import ForecastConfig
from src.data import (
    NormalizationParams,
    build_windows,
    denormalize,
    fit_normalization,
    future_dates,
    get_last_window,
    normalize,
    train_test_split_series,
    validate_price_series,
)
from src.errors import InvalidInputError, TrainingError
from src.models import SequenceModel, make_forecast

logger = logging.getLogger(__name__)


class Stage(Enum):
    IDLE = "idle"
    NORMALIZED = "normalized"
    WINDOWED = "windowed"
    SPLIT = "split"
    TRAINED = "trained"
    PREDICTED = "predicted"
    DENORMALIZED = "denormalized"
    REASSEMBLED = "reassembled"


@dataclass(frozen=True)
class ForecastResult:
    forecast: pd.Series
    params: NormalizationParams
    train_mse: float
    test_mse: Optional[float]
    n_train: int
    n_test: int
    test_dates: pd.DatetimeIndex
    test_actual: np.ndarray
    test_predicted: np.ndarray


class ForecastDriver:
    """
    Runs the sequence-model pipeline once over a price series.

    The driver moves through `Stage` in order and cannot be re-run; any
    failure leaves it short of REASSEMBLED and nothing is returned.
    """

    def __init__(self, model: SequenceModel, config: ForecastConfig):
        self.model = model
        self.config = config
        self.stage = Stage.IDLE

    def _advance(self, stage: Stage) -> None:
        logger.debug("Forecast driver: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def _call_model(self, what: str, fn, *args):
        try:
            return fn(*args)
        except InvalidInputError:
            raise
        except Exception as e:
            raise TrainingError(f"Sequence model failed to {what}: {e}") from e

    def run(self, prices: pd.Series) -> ForecastResult:
        if self.stage is not Stage.IDLE:
            raise RuntimeError(f"ForecastDriver already ran (stage={self.stage.value}).")

        cfg = self.config
        prices = validate_price_series(prices)
        values = prices.to_numpy(dtype=float)

        params = fit_normalization(values)
        scaled = normalize(values, params)
        self._advance(Stage.NORMALIZED)

        X, y = build_windows(scaled, cfg.time_step)
        self._advance(Stage.WINDOWED)

        X_train, X_test, y_train, y_test = train_test_split_series(X, y, cfg.train_fraction)
        if len(X_train) == 0:
            raise InvalidInputError(
                f"Training split is empty: {len(X)} windows at train_fraction={cfg.train_fraction}."
            )
        self._advance(Stage.SPLIT)
        logger.info("Windows: %d train / %d test (time_step=%d)", len(X_train), len(X_test), cfg.time_step)

        self._call_model("train", self.model.train, X_train, y_train, cfg.training)
        self._advance(Stage.TRAINED)

        seed = get_last_window(scaled, cfg.time_step)
        preds_scaled = self._call_model(
            "predict", make_forecast, self.model, seed, cfg.horizon_days, cfg.forecast_strategy
        )
        self._advance(Stage.PREDICTED)

        train_mse = float(self._call_model("evaluate", self.model.evaluate, X_train, y_train))
        test_mse = None
        test_pred_scaled = np.array([], dtype=float)
        if len(X_test) > 0:
            test_mse = float(self._call_model("evaluate", self.model.evaluate, X_test, y_test))
            test_pred_scaled = np.asarray(
                self._call_model("predict", self.model.predict, X_test), dtype=float
            ).reshape(-1)
        else:
            logger.warning("Test split is empty; test MSE not available.")

        preds = denormalize(np.asarray(preds_scaled, dtype=float), params)
        test_actual = denormalize(np.asarray(y_test, dtype=float), params)
        test_predicted = denormalize(test_pred_scaled, params)
        self._advance(Stage.DENORMALIZED)

        # window i targets prices[i + time_step]; test windows follow the train ones
        n_train = len(X_train)
        test_dates = prices.index[cfg.time_step + n_train:]
        forecast = pd.Series(
            preds,
            index=future_dates(prices.index[-1], cfg.horizon_days),
            name="forecast_close",
        )
        self._advance(Stage.REASSEMBLED)

        logger.info(
            "LSTM forecast %s to %s (train MSE %.5f, test MSE %s)",
            forecast.index[0].date(), forecast.index[-1].date(), train_mse,
            "n/a" if test_mse is None else f"{test_mse:.5f}",
        )
        return ForecastResult(
            forecast=forecast,
            params=params,
            train_mse=train_mse,
            test_mse=test_mse,
            n_train=n_train,
            n_test=len(X_test),
            test_dates=test_dates,
            test_actual=test_actual,
            test_predicted=test_predicted,
        )
