# src/reports.py

import html
import os
from typing import Dict, List, Optional

import pandas as pd
import plotly.graph_objects as go


def write_report(
    out_path: str,
    symbol: str,
    metrics: pd.DataFrame,
    notes: List[str],
    charts: Dict[str, go.Figure],
    forecast: pd.DataFrame,
    diagnostic_plot: Optional[str] = None,
) -> str:
    """
    Write the static HTML report: metrics, interpretation, interactive charts
    and the forecast table.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    title = html.escape(f"{symbol} Forecasting Report")

    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset='utf-8'>",
        f"<title>{title}</title>",
        "<style>body{font-family:sans-serif;max-width:1200px;margin:auto;}"
        "table{border-collapse:collapse;}td,th{padding:4px 10px;border:1px solid #ccc;}</style>",
        "</head><body>",
        f"<h1>{title}</h1>",
    ]

    # 1. Model performance
    parts.append("<h2>LSTM error metrics</h2>")
    parts.append(metrics.to_html(index=False, float_format=lambda v: f"{v:.5f}", na_rep="n/a"))

    parts.append("<h3>Interpretation</h3><ul>")
    parts += [f"<li>{html.escape(note)}</li>" for note in notes]
    parts.append("</ul>")

    # 2. Charts; plotly.js is pulled from the CDN once
    include_js = "cdn"
    for heading, fig in charts.items():
        parts.append(f"<h2>{html.escape(heading)}</h2>")
        parts.append(fig.to_html(full_html=False, include_plotlyjs=include_js))
        include_js = False

    if diagnostic_plot is not None:
        rel = os.path.relpath(diagnostic_plot, os.path.dirname(out_path) or ".")
        parts.append("<h2>Test set: actual vs LSTM prediction</h2>")
        parts.append(f"<img src='{html.escape(rel)}' style='max-width:100%'>")

    # 3. Future forecast
    parts.append(f"<h2>Future forecast ({len(forecast)} days)</h2>")
    parts.append(forecast.to_html(float_format=lambda v: f"{v:.2f}", na_rep=""))

    parts.append("</body></html>")

    with open(out_path, "w", encoding="utf-8") as f:
        f.write("\n".join(parts))
    print(f"Saved report to {out_path}")
    return out_path
