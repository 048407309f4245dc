import os

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest

import main as main_module
from config import ForecastConfig, TrainingParams
from fakes import FakeDecomposition, FakeSequenceModel
from src.align import align
from src.errors import InvalidInputError, TrainingError
from src.plots import forecast_chart, plot_actual_vs_pred
from src.reports import write_report


def _table(prices):
    prophet_fc = FakeDecomposition().fit(prices).predict(30)
    lstm = pd.Series(
        np.full(30, 210.0), index=prophet_fc.index, name="forecast_close"
    )
    return align(prices, prophet_fc, lstm, display_window_days=30)


def test_forecast_chart_traces(prices):
    fig = forecast_chart(_table(prices), "AAPL")
    names = [t.name for t in fig.data]
    assert names == ["Actual close", "Prophet upper", "Prophet lower", "Prophet forecast", "LSTM forecast"]
    assert fig.data[0].mode == "markers"
    assert fig.layout.xaxis.rangeslider.visible is True
    assert len(fig.layout.shapes) == 1


def test_write_report(tmp_path, prices):
    out = tmp_path / "out" / "report.html"
    fig = go.Figure()
    forecast = pd.DataFrame({"lstm_forecast": [1.0, 2.0]}, index=pd.date_range("2023-12-01", periods=2))

    write_report(
        str(out),
        symbol="AAPL",
        metrics=pd.DataFrame([{"metric": "Train MSE (normalized)", "value": 0.01}]),
        notes=["Errors look <fine>."],
        charts={"Chart one": fig},
        forecast=forecast,
    )

    text = out.read_text(encoding="utf-8")
    assert "AAPL Forecasting Report" in text
    assert "Errors look &lt;fine&gt;." in text
    assert "Chart one" in text
    assert "Future forecast (2 days)" in text


def test_run_end_to_end(tmp_path, prices):
    config = ForecastConfig(
        time_step=10,
        horizon_days=30,
        training=TrainingParams(epochs=1, batch_size=8),
        outputs_dir=str(tmp_path / "outputs"),
        plots_dir=str(tmp_path / "plots"),
    )
    report = main_module.run(
        config,
        model=FakeSequenceModel(),
        decomposition=FakeDecomposition(),
        loader=lambda symbol, start, end: prices,
    )

    assert os.path.exists(report)
    assert os.path.exists(tmp_path / "plots" / "actual_vs_pred_lstm.png")
    assert os.path.exists(tmp_path / "plots" / "combined_forecast.html")

    saved = pd.read_csv(tmp_path / "outputs" / "future_forecast.csv", parse_dates=["date"])
    assert len(saved) == 30
    assert saved["date"].iloc[0] == pd.Timestamp("2023-12-01")
    assert {"prophet_forecast", "lstm_forecast"}.issubset(saved.columns)


def test_failed_run_writes_nothing(tmp_path, prices):
    config = ForecastConfig(
        time_step=10,
        outputs_dir=str(tmp_path / "outputs"),
        plots_dir=str(tmp_path / "plots"),
    )
    with pytest.raises(TrainingError):
        main_module.run(
            config,
            model=FakeSequenceModel(fail_on="train"),
            decomposition=FakeDecomposition(),
            loader=lambda symbol, start, end: prices,
        )
    assert not (tmp_path / "outputs").exists()
    assert not (tmp_path / "plots").exists()


def test_plot_actual_vs_pred_uses_dates(tmp_path):
    dates = pd.date_range("2023-10-01", periods=20, freq="D")
    actual = np.linspace(100, 120, 20)
    metrics = {"mse": 1.0, "rmse": 1.0, "mae": 0.5, "mape": 0.4}

    path = plot_actual_vs_pred(dates, actual, actual + 1.0, "AAPL LSTM", str(tmp_path), metrics=metrics)
    assert path.endswith("actual_vs_pred_lstm.png")
    assert os.path.getsize(path) > 0


def test_plot_actual_vs_pred_rejects_length_mismatch(tmp_path):
    dates = pd.date_range("2023-10-01", periods=5, freq="D")
    with pytest.raises(InvalidInputError):
        plot_actual_vs_pred(dates, np.ones(4), np.ones(4), "AAPL LSTM", str(tmp_path))


def test_failed_write_removes_partial_outputs(tmp_path, prices, monkeypatch):
    def broken_report(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(main_module, "write_report", broken_report)
    config = ForecastConfig(
        time_step=10,
        training=TrainingParams(epochs=1, batch_size=8),
        outputs_dir=str(tmp_path / "outputs"),
        plots_dir=str(tmp_path / "plots"),
    )
    with pytest.raises(OSError, match="disk full"):
        main_module.run(
            config,
            model=FakeSequenceModel(),
            decomposition=FakeDecomposition(),
            loader=lambda symbol, start, end: prices,
        )
    assert not (tmp_path / "outputs").exists()
    assert not (tmp_path / "plots").exists()
