"""Metric interface and the result every metric returns."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

MetricCategory = Literal["work", "sprints"]


@dataclass
class AnalyticsResult:
    """Rows, headline numbers and an optional Plotly chart for one metric run.

    ``error`` is set instead of raising so one failing metric never takes
    down a listing of several.
    """

    metric_id: str
    title: str
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    data: Any = None
    chart_json: str | None = None
    summary: dict = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "metric_id": self.metric_id,
            "title": self.title,
            "computed_at": self.computed_at.isoformat(),
            "summary": self.summary,
            "data": self.data,
            "chart_json": self.chart_json,
            "error": self.error,
        }


class AnalyticsMetric(ABC):
    """A named computation over work items or sprints.

    Subclasses expose their identity as properties that do not touch
    ``self``, so the registry can read them from the class, and register
    with ``@AnalyticsRegistry.register``.
    """

    @property
    @abstractmethod
    def metric_id(self) -> str:
        ...

    @property
    @abstractmethod
    def title(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def category(self) -> MetricCategory:
        """'work' for item flow, 'sprints' for delivery against plan."""

    @abstractmethod
    def compute(self, **kwargs) -> AnalyticsResult:
        """Run the metric; ``kwargs`` are the request's filter values."""

    def get_filter_options(self) -> dict:
        """Filters accepted by :meth:`compute`, keyed by parameter name."""
        return {}
