"""Plotly chart builders used by the metrics."""

from analytics.visualizations.base import Visualization
from analytics.visualizations.charts import BarChart

__all__ = ["Visualization", "BarChart"]
