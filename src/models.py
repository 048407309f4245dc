# src/models.py
"""
Sequence-model helpers for the forecast report (Keras 3 compatible).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

# IMPORTANT: Keras 3 imports (NOT tf_keras)
from keras import Input
from keras.models import Sequential
from keras.layers import LSTM, Dense, Dropout

from config import TrainingParams
from src.errors import InvalidInputError

logger = logging.getLogger(__name__)


class SequenceModel(ABC):
    """
    A trainable model mapping windows of shape (n, time_step) to one value each.
    """

    @abstractmethod
    def train(self, X: np.ndarray, y: np.ndarray, params: TrainingParams) -> None:
        ...

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """Return predictions of shape (n,)."""

    @abstractmethod
    def evaluate(self, X: np.ndarray, y: np.ndarray) -> float:
        """Return the mean squared error on (X, y)."""


def build_lstm(input_shape: Tuple[int, int]) -> Sequential:
    model = Sequential()
    model.add(Input(shape=input_shape))
    model.add(LSTM(64, return_sequences=True))
    model.add(Dropout(0.2))
    model.add(LSTM(32, return_sequences=False))
    model.add(Dropout(0.2))
    model.add(Dense(16, activation="relu"))
    model.add(Dense(1))
    model.compile(optimizer="adam", loss="mse")
    return model


class KerasSequenceModel(SequenceModel):
    def __init__(self, time_step: int, verbose: int = 0):
        self.time_step = time_step
        self.verbose = verbose
        self.model = None

    def _to_3d(self, X) -> np.ndarray:
        X = np.asarray(X, dtype="float32")
        if X.ndim == 2:
            X = X.reshape((X.shape[0], X.shape[1], 1))
        if X.ndim != 3 or X.shape[1] != self.time_step:
            raise InvalidInputError(
                f"Expected windows of length {self.time_step}, got shape {X.shape}"
            )
        return X

    def train(self, X, y, params: TrainingParams) -> None:
        X3 = self._to_3d(X)
        self.model = build_lstm((self.time_step, 1))
        logger.info(
            "Training LSTM on %d windows (epochs=%d, batch_size=%d)",
            len(X3), params.epochs, params.batch_size,
        )
        self.model.fit(
            X3,
            np.asarray(y, dtype="float32"),
            epochs=params.epochs,
            batch_size=params.batch_size,
            validation_split=params.validation_split,
            shuffle=False,
            verbose=self.verbose,
        )

    def _require_model(self):
        if self.model is None:
            raise RuntimeError("Model has not been trained yet.")
        return self.model

    def predict(self, X) -> np.ndarray:
        model = self._require_model()
        return np.asarray(model.predict(self._to_3d(X), verbose=0)).reshape(-1)

    def evaluate(self, X, y) -> float:
        model = self._require_model()
        loss = model.evaluate(
            self._to_3d(X), np.asarray(y, dtype="float32"), verbose=0
        )
        if isinstance(loss, (list, tuple)):
            loss = loss[0]
        return float(loss)


def make_forecast(
    model: SequenceModel, seed_window, horizon: int, strategy: str = "autoregressive"
) -> np.ndarray:
    """
    Predict `horizon` steps past the seed window.

    "repeated": every step is predicted from the same seed window.
    "autoregressive": each prediction is rolled into the window before the next step.
    """
    window = np.asarray(seed_window, dtype=float).ravel()

    if strategy == "repeated":
        batch = np.repeat(window[np.newaxis, :], horizon, axis=0)
        return np.asarray(model.predict(batch), dtype=float).reshape(-1)

    if strategy != "autoregressive":
        raise InvalidInputError(f"Unknown forecast strategy: {strategy!r}")

    current_window = window.copy()
    preds = []
    for _ in range(horizon):
        y_hat = float(np.asarray(model.predict(current_window[np.newaxis, :])).reshape(-1)[0])
        preds.append(y_hat)

        # autoregressive roll-forward
        current_window = np.append(current_window[1:], y_hat)

    return np.array(preds, dtype=float)
