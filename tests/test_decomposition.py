import numpy as np
import pandas as pd
import pytest

import src.decomposition as decomposition_module
from src.decomposition import ProphetForecaster
from src.errors import TrainingError


class FakeProphet:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.history = None
        FakeProphet.instances.append(self)

    def fit(self, df):
        self.history = df
        return self

    def make_future_dataframe(self, periods, freq="D", include_history=True):
        last = self.history["ds"].max()
        return pd.DataFrame({"ds": pd.date_range(last + pd.Timedelta(days=1), periods=periods, freq=freq)})

    def predict(self, future):
        n = len(future)
        return pd.DataFrame(
            {
                "ds": future["ds"],
                "yhat": np.full(n, 10.0),
                "yhat_upper": np.full(n, 12.0),
                "yhat_lower": np.full(n, 8.0),
                "trend": np.full(n, 10.0),
            }
        )


class BrokenProphet(FakeProphet):
    def fit(self, df):
        raise RuntimeError("stan backend missing")


def test_prophet_forecaster_maps_columns(monkeypatch, prices):
    monkeypatch.setattr(decomposition_module, "Prophet", FakeProphet)

    forecaster = ProphetForecaster(weekly_seasonality=False, interval_width=0.9).fit(prices)
    fc = forecaster.predict(30)

    assert list(fc.columns) == ["forecast", "upper", "lower"]
    assert fc.index[0] == pd.Timestamp("2023-12-01")
    assert len(fc) == 30
    assert (fc["upper"] >= fc["lower"]).all()

    prophet = FakeProphet.instances[-1]
    assert prophet.kwargs["weekly_seasonality"] is False
    assert prophet.kwargs["interval_width"] == 0.9
    assert list(prophet.history.columns) == ["ds", "y"]


def test_predict_before_fit():
    with pytest.raises(RuntimeError):
        ProphetForecaster().predict(5)


def test_fit_failure_becomes_training_error(monkeypatch, prices):
    monkeypatch.setattr(decomposition_module, "Prophet", BrokenProphet)
    with pytest.raises(TrainingError, match="stan backend"):
        ProphetForecaster().fit(prices)
