"""Analytics layer for WorkTrack: registered metrics and their charts."""

from analytics.base import AnalyticsMetric, AnalyticsResult
from analytics.registry import AnalyticsRegistry

__all__ = ["AnalyticsMetric", "AnalyticsResult", "AnalyticsRegistry"]
