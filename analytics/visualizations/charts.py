"""Bar charts for the work and sprint metrics."""

from typing import Any

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from analytics.visualizations.base import Visualization


class BarChart(Visualization):
    """Grouped or stacked bars from a long-format frame or a series dict."""

    viz_type = "bar"

    def build_figure(self, data: Any, **options) -> go.Figure:
        """Build the figure.

        ``data`` is either a DataFrame plotted with ``x_col``/``y_col`` and an
        optional ``color_col``, or ``{"x": [...], "series": {name: [...]}}``.
        Options: title, x_label, y_label, barmode ('group' or 'stack').
        """
        barmode = options.get("barmode", "group")
        title = options.get("title", "")

        if isinstance(data, pd.DataFrame):
            fig = px.bar(
                data,
                x=options.get("x_col", data.columns[0]),
                y=options.get("y_col", data.columns[-1]),
                color=options.get("color_col"),
                barmode=barmode,
                title=title,
            )
        else:
            fig = go.Figure(
                [
                    go.Bar(name=name, x=data.get("x", []), y=values)
                    for name, values in data.get("series", {}).items()
                ]
            )
            fig.update_layout(title=title, barmode=barmode)

        fig.update_layout(
            xaxis_title=options.get("x_label", ""),
            yaxis_title=options.get("y_label", ""),
            legend_title_text=options.get("legend_title", ""),
        )
        return fig
