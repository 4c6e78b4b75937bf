"""Work item and sprint delivery metrics."""

from analytics.work.status_breakdown import StatusBreakdownMetric
from analytics.work.sprint_progress import SprintProgressMetric

__all__ = ["StatusBreakdownMetric", "SprintProgressMetric"]
