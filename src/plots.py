# src/plots.py

import os
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import plotly.graph_objects as go

from src.align import ACTUAL, PRIMARY, PRIMARY_LOWER, PRIMARY_UPPER, SECONDARY
from src.errors import InvalidInputError

SERIES_STYLE = {
    PRIMARY: ("Prophet forecast", "tab:green"),
    SECONDARY: ("LSTM forecast", "tab:orange"),
}


def _as_float(col: pd.Series) -> np.ndarray:
    return col.to_numpy(dtype="float64", na_value=np.nan)


def forecast_chart(table: pd.DataFrame, title: str) -> go.Figure:
    """
    Interactive chart of an aligned table: actual closes as markers, one line
    per forecast column, the Prophet interval as a band, the forecast horizon
    shaded, and a range slider.
    """
    fig = go.Figure()
    x = table.index

    fig.add_trace(go.Scatter(
        x=x,
        y=_as_float(table[ACTUAL]),
        mode="markers",
        name="Actual close",
        marker=dict(size=4, color="#1f77b4"),
        hovertemplate="%{x|%Y-%m-%d}<br>%{y:.2f}<extra></extra>",
    ))

    if PRIMARY_UPPER in table.columns and PRIMARY_LOWER in table.columns:
        fig.add_trace(go.Scatter(
            x=x,
            y=_as_float(table[PRIMARY_UPPER]),
            mode="lines",
            name="Prophet upper",
            line=dict(width=0.5, color="rgba(44,160,44,0.4)"),
            connectgaps=False,
        ))
        fig.add_trace(go.Scatter(
            x=x,
            y=_as_float(table[PRIMARY_LOWER]),
            mode="lines",
            name="Prophet lower",
            line=dict(width=0.5, color="rgba(44,160,44,0.4)"),
            fill="tonexty",
            fillcolor="rgba(44,160,44,0.15)",
            connectgaps=False,
        ))

    for col, (label, color) in SERIES_STYLE.items():
        if col not in table.columns:
            continue
        fig.add_trace(go.Scatter(
            x=x,
            y=_as_float(table[col]),
            mode="lines",
            name=label,
            line=dict(color=color, width=2),
            hovertemplate="%{x|%Y-%m-%d}<br>%{y:.2f}<extra></extra>",
        ))

    forecast_cols = [c for c in table.columns if c != ACTUAL]
    has_forecast = table[forecast_cols].notna().any(axis=1)
    if has_forecast.any():
        horizon = table.index[has_forecast.to_numpy()]
        fig.add_vrect(
            x0=horizon.min(),
            x1=horizon.max(),
            fillcolor="lightgray",
            opacity=0.3,
            layer="below",
            line_width=0,
        )
        fig.add_annotation(
            x=horizon.min(),
            y=1.0,
            yref="paper",
            text="Forecast horizon",
            showarrow=False,
            xanchor="left",
            yanchor="bottom",
        )

    fig.update_layout(
        title=title,
        xaxis_title="Date",
        yaxis_title="Price (USD)",
        template="plotly_white",
        hovermode="x unified",
        height=600,
        legend=dict(yanchor="top", y=0.99, xanchor="left", x=0.01),
    )
    fig.update_xaxes(
        rangeslider=dict(visible=True),
        rangeselector=dict(
            buttons=[
                dict(count=1, label="1m", step="month", stepmode="backward"),
                dict(count=3, label="3m", step="month", stepmode="backward"),
                dict(count=6, label="6m", step="month", stepmode="backward"),
                dict(step="all"),
            ]
        ),
    )
    return fig


def save_chart(fig: go.Figure, out_path: str) -> str:
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    fig.write_html(out_path, include_plotlyjs="cdn")
    print(f"Saved chart to {out_path}")
    return out_path


def plot_actual_vs_pred(
    test_dates: pd.DatetimeIndex,
    y_true,
    y_pred,
    title: str,
    plots_dir: str,
    metrics: Optional[Dict[str, float]] = None,
) -> str:
    """
    Dated test-set view of actual closes against one-step LSTM predictions,
    with the absolute error as a band. Returns the PNG path.
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    if not len(test_dates) == len(y_true) == len(y_pred):
        raise InvalidInputError(
            f"Length mismatch: {len(test_dates)} dates, {len(y_true)} actuals, {len(y_pred)} predictions"
        )
    if len(y_true) == 0:
        raise InvalidInputError("Nothing to plot: the test set is empty.")

    os.makedirs(plots_dir, exist_ok=True)
    error = np.abs(y_true - y_pred)

    fig, ax = plt.subplots(figsize=(16, 6))
    ax.plot(test_dates, y_true, label="Actual close", color="tab:blue", linewidth=1.5)
    ax.plot(test_dates, y_pred, label="LSTM one-step prediction", color="tab:orange", linewidth=2, alpha=0.8)
    ax.fill_between(test_dates, y_pred - error, y_pred + error, color="tab:orange", alpha=0.08, label="|Error|")

    ax.set_title(f"{title} – Test Set ({test_dates[0]:%Y-%m-%d} to {test_dates[-1]:%Y-%m-%d})", fontsize=16)
    ax.set_xlabel("Date", fontsize=12)
    ax.set_ylabel("Price (USD)", fontsize=12)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper left", fontsize=12)
    fig.autofmt_xdate()

    if metrics:
        text = (
            f"{len(y_true)} test days\n"
            f"RMSE {metrics['rmse']:.2f} USD | MAE {metrics['mae']:.2f} USD | MAPE {metrics['mape']:.2f}%"
        )
        ax.annotate(
            text,
            xy=(0.01, 0.02),
            xycoords="axes fraction",
            fontsize=9,
            bbox=dict(boxstyle="round", fc="white", ec="gray", alpha=0.6),
        )

    out_path = os.path.join(plots_dir, "actual_vs_pred_lstm.png")
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"Saved plot to {out_path}")
    return out_path
