# main.py
"""
Build the forecast report: fetch closes, fit Prophet and the LSTM, align
both forecasts with the actuals and write the HTML report.
"""

import logging
import os
import sys
from typing import Callable, Optional

import pandas as pd

from config import ForecastConfig
from src.align import align
from src.data import load_data
from src.decomposition import DecompositionForecaster, ProphetForecaster
from src.errors import ForecastReportError
from src.evaluation import interpret_metrics, metrics_table, price_metrics
from src.forecast import ForecastDriver
from src.models import KerasSequenceModel, SequenceModel
from src.plots import forecast_chart, plot_actual_vs_pred, save_chart
from src.reports import write_report

logger = logging.getLogger(__name__)


def run(
    config: ForecastConfig,
    model: Optional[SequenceModel] = None,
    decomposition: Optional[DecompositionForecaster] = None,
    loader: Callable[[str, str, str], pd.Series] = load_data,
) -> str:
    """
    Run every stage, then write outputs. Returns the report path.
    Nothing is written unless all stages succeed.
    """
    if model is None:
        model = KerasSequenceModel(config.time_step)
    if decomposition is None:
        decomposition = ProphetForecaster(
            yearly_seasonality=config.yearly_seasonality,
            weekly_seasonality=config.weekly_seasonality,
            daily_seasonality=config.daily_seasonality,
            interval_width=config.interval_width,
        )

    prices = loader(config.symbol, config.start_date, config.end_date)

    prophet_fc = decomposition.fit(prices).predict(config.horizon_days)
    result = ForecastDriver(model, config).run(prices)

    primary_table = align(
        prices, prophet_fc, display_window_days=config.display_window_days
    )
    combined_table = align(
        prices, prophet_fc, result.forecast, display_window_days=config.display_window_days
    )

    test_metrics = None
    if result.n_test > 0:
        test_metrics = price_metrics(result.test_actual, result.test_predicted)
    metrics = metrics_table(result.train_mse, result.test_mse, test_metrics)
    notes = interpret_metrics(result.train_mse, result.test_mse, test_metrics)

    charts = {
        f"{config.symbol} – Prophet forecast": forecast_chart(
            primary_table, f"{config.symbol} – {config.horizon_days}-Day Prophet Forecast"
        ),
        f"{config.symbol} – Prophet vs LSTM": forecast_chart(
            combined_table, f"{config.symbol} – Prophet and LSTM Forecasts"
        ),
    }
    forecast_df = pd.DataFrame({
        "prophet_forecast": prophet_fc["forecast"],
        "prophet_lower": prophet_fc["lower"],
        "prophet_upper": prophet_fc["upper"],
        "lstm_forecast": result.forecast,
    })

    return _write_outputs(config, forecast_df, charts, result, metrics, notes, test_metrics)


def _write_outputs(config, forecast_df, charts, result, metrics, notes, test_metrics) -> str:
    """
    Write CSV, charts, diagnostic PNG and report. On any failure every file
    written so far is removed (and any output directory this run created),
    then the error is re-raised.
    """
    new_dirs = [d for d in (config.outputs_dir, config.plots_dir) if not os.path.isdir(d)]
    written = []
    try:
        os.makedirs(config.outputs_dir, exist_ok=True)
        csv_path = os.path.join(config.outputs_dir, "future_forecast.csv")
        written.append(csv_path)
        forecast_df.to_csv(csv_path, index_label="date")
        print(f"Saved forecast to {csv_path}")

        for name, fig in zip(("prophet_forecast.html", "combined_forecast.html"), charts.values()):
            chart_path = os.path.join(config.plots_dir, name)
            written.append(chart_path)
            save_chart(fig, chart_path)

        diagnostic_plot = None
        if result.n_test > 0:
            written.append(os.path.join(config.plots_dir, "actual_vs_pred_lstm.png"))
            diagnostic_plot = plot_actual_vs_pred(
                result.test_dates,
                result.test_actual,
                result.test_predicted,
                title=f"{config.symbol} LSTM",
                plots_dir=config.plots_dir,
                metrics=test_metrics,
            )

        report_path = os.path.join(config.outputs_dir, config.report_name)
        written.append(report_path)
        return write_report(
            report_path,
            symbol=config.symbol,
            metrics=metrics,
            notes=notes,
            charts=charts,
            forecast=forecast_df,
            diagnostic_plot=diagnostic_plot,
        )
    except Exception:
        logger.error("Writing outputs failed; removing %d partial file(s)", len(written))
        for path in written:
            if os.path.exists(path):
                os.remove(path)
        for d in new_dirs:
            if os.path.isdir(d) and not os.listdir(d):
                os.rmdir(d)
        raise


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        run(ForecastConfig())
    except ForecastReportError as e:
        logger.error("Report run aborted: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
