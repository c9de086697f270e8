from __future__ import annotations

from datetime import date, timedelta

import pandas as pd
import plotly.graph_objects as go

from dashboard.theme import get_active_theme

DAY_LABELS = ["Lun", "Mar", "Mer", "Gio", "Ven", "Sab", "Dom"]


def _active_theme():
    return get_active_theme()[1]


def apply_common_plot_style(fig, title, show_xgrid=False, show_ygrid=False):
    theme = _active_theme()
    fig.update_layout(
        title=title,
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=theme["text_main"]),
        margin=dict(l=40, r=20, t=40, b=20),
        xaxis=dict(showgrid=show_xgrid, gridcolor=theme["plot_grid"], zeroline=False),
        yaxis=dict(showgrid=show_ygrid, gridcolor=theme["plot_grid"], zeroline=False),
    )
    return fig


def completion_frame(counts_by_date: dict, end: date, days: int = 90) -> pd.DataFrame:
    """One row per calendar day in the window with its completion count and grid position."""
    start = end - timedelta(days=days - 1)
    frame = pd.DataFrame({"date": pd.date_range(start, end, freq="D")})
    frame["iso"] = frame["date"].dt.strftime("%Y-%m-%d")
    frame["count"] = frame["iso"].map(lambda iso: int(counts_by_date.get(iso, 0))).astype(int)
    frame["weekday"] = frame["date"].dt.weekday
    first_monday = pd.Timestamp(start) - pd.Timedelta(days=start.weekday())
    frame["week"] = ((frame["date"] - first_monday).dt.days // 7).astype(int)
    return frame


def completion_heatmap(counts_by_date: dict, end: date, days: int = 90, title: str = ""):
    theme = _active_theme()
    frame = completion_frame(counts_by_date, end, days)
    weeks = int(frame["week"].max()) + 1 if not frame.empty else 0
    z = [[None for _ in range(weeks)] for _ in range(7)]
    text = [["" for _ in range(weeks)] for _ in range(7)]
    for row in frame.itertuples():
        z[row.weekday][row.week] = row.count
        text[row.weekday][row.week] = f"{row.iso} • {row.count}"
    fig = go.Figure(
        data=go.Heatmap(
            z=z,
            text=text,
            hoverinfo="text",
            colorscale=[(0.0, theme["heat_empty"]), (1.0, theme["primary"])],
            showscale=False,
            zmin=0,
            xgap=3,
            ygap=3,
        )
    )
    apply_common_plot_style(fig, title)
    fig.update_layout(height=220)
    fig.update_xaxes(showticklabels=False)
    fig.update_yaxes(tickmode="array", tickvals=list(range(7)), ticktext=DAY_LABELS, autorange="reversed")
    return fig


def format_bytes(size, decimals: int = 2) -> str:
    size = float(size or 0)
    if size == 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{size:.{decimals}f} {units[index]}"
