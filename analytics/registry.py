"""Registry of analytics metrics, filled by the ``register`` decorator."""

from analytics.base import AnalyticsMetric

MetricClass = type[AnalyticsMetric]


class AnalyticsRegistry:
    """Metric classes keyed by ``metric_id``."""

    _metrics: dict[str, MetricClass] = {}

    @classmethod
    def register(cls, metric_class: MetricClass) -> MetricClass:
        """Class decorator adding ``metric_class`` to the registry.

        Raises:
            ValueError: The class has no id, or another class already uses it.
        """
        metric_id = metric_class.metric_id.fget(None)  # type: ignore[attr-defined]
        if not metric_id:
            raise ValueError(f"{metric_class.__name__} must define metric_id")
        existing = cls._metrics.get(metric_id)
        if existing is not None and existing is not metric_class:
            raise ValueError(
                f"Metric id {metric_id!r} is already used by {existing.__name__}"
            )
        cls._metrics[metric_id] = metric_class
        return metric_class

    @classmethod
    def get(cls, metric_id: str) -> MetricClass | None:
        return cls._metrics.get(metric_id)

    @classmethod
    def get_by_category(cls, category: str) -> list[MetricClass]:
        return [
            metric_class
            for metric_class in cls._metrics.values()
            if metric_class.category.fget(None) == category  # type: ignore[attr-defined]
        ]

    @classmethod
    def describe(cls) -> list[dict]:
        """Listing of every metric with the filters it accepts, sorted by id."""
        listing = []
        for metric_id, metric_class in sorted(cls._metrics.items()):
            metric = metric_class()
            listing.append(
                {
                    "metric_id": metric_id,
                    "title": metric.title,
                    "description": metric.description,
                    "category": metric.category,
                    "filters": metric.get_filter_options(),
                }
            )
        return listing

    @classmethod
    def discover(cls) -> None:
        """Import the metric packages so their decorators run."""
        import analytics.work  # noqa: F401
