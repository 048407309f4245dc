# src/evaluation.py

from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import (
    mean_absolute_error,
    mean_absolute_percentage_error,
    mean_squared_error,
)

from src.errors import InvalidInputError


def price_metrics(y_true, y_pred) -> Dict[str, float]:
    """
    Error metrics in price units (USD) on denormalized values.
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    if len(y_true) == 0:
        raise InvalidInputError("Cannot compute metrics on an empty test set.")
    if len(y_true) != len(y_pred):
        raise InvalidInputError(f"Length mismatch: {len(y_true)} vs {len(y_pred)}")

    mse = float(mean_squared_error(y_true, y_pred))
    return {
        "mse": mse,
        "rmse": float(np.sqrt(mse)),
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "mape": float(mean_absolute_percentage_error(y_true, y_pred) * 100.0),
    }


def metrics_table(
    train_mse: float,
    test_mse: Optional[float],
    test_metrics: Optional[Dict[str, float]] = None,
) -> pd.DataFrame:
    rows = [
        {"metric": "Train MSE (normalized)", "value": train_mse},
        {"metric": "Test MSE (normalized)", "value": test_mse},
    ]
    if test_metrics:
        rows += [
            {"metric": "Test RMSE (USD)", "value": test_metrics["rmse"]},
            {"metric": "Test MAE (USD)", "value": test_metrics["mae"]},
            {"metric": "Test MAPE (%)", "value": test_metrics["mape"]},
        ]
    return pd.DataFrame(rows)


def interpret_metrics(
    train_mse: float,
    test_mse: Optional[float],
    test_metrics: Optional[Dict[str, float]] = None,
) -> List[str]:
    """
    Plain-language reading of the error metrics for the report.
    """
    notes = []

    if test_mse is None:
        notes.append(
            "No held-out windows were left after the split, so only the training error is reported."
        )
    elif train_mse <= 0:
        notes.append(f"Training MSE is {train_mse:.5f}; the model fits the training windows exactly.")
    else:
        ratio = test_mse / train_mse
        if ratio > 2.0:
            notes.append(
                f"Test MSE is {ratio:.1f}x the training MSE: the LSTM is likely overfitting "
                "the training period and generalises poorly to recent prices."
            )
        elif ratio < 0.5:
            notes.append(
                f"Test MSE is only {ratio:.2f}x the training MSE: the held-out period was "
                "easier to predict than the training history (e.g. lower volatility)."
            )
        else:
            notes.append(
                f"Test and training MSE are of similar size (ratio {ratio:.2f}), "
                "so the fit carries over to unseen data."
            )

    if test_metrics:
        mape = test_metrics["mape"]
        if mape < 2.0:
            band = "tight"
        elif mape < 5.0:
            band = "moderate"
        else:
            band = "loose"
        notes.append(
            f"On the test set the one-step-ahead error is {test_metrics['mae']:.2f} USD on average "
            f"(RMSE {test_metrics['rmse']:.2f} USD, MAPE {mape:.2f}%), a {band} fit."
        )

    notes.append(
        "These are one-step-ahead errors; multi-day forecasts compound error and should be "
        "read as a trend indication, not a price target."
    )
    return notes
