"""Status breakdown metric."""

from typing import Literal

import pandas as pd

from analytics.base import AnalyticsMetric, AnalyticsResult
from analytics.registry import AnalyticsRegistry
from analytics.visualizations import BarChart


@AnalyticsRegistry.register
class StatusBreakdownMetric(AnalyticsMetric):
    """Count live work items per type and status."""

    @property
    def metric_id(self) -> str:
        return "status_breakdown"

    @property
    def title(self) -> str:
        return "Status Breakdown"

    @property
    def description(self) -> str:
        return "Live work items grouped by type and status"

    @property
    def category(self) -> Literal["work", "sprints"]:
        return "work"

    def compute(self, **kwargs) -> AnalyticsResult:
        """Compute item counts by type and status.

        Kwargs:
            project_id: Restrict to one project.
        """
        from app.extensions import db
        from app.models import WorkItem
        from app.services.workflow import get_variant

        try:
            query = db.session.query(
                WorkItem.type, WorkItem.status, WorkItem.story_points
            ).filter(WorkItem.live())
            if kwargs.get("project_id"):
                query = query.filter(WorkItem.project_id == int(kwargs["project_id"]))

            df = pd.DataFrame(query.all(), columns=["type", "status", "story_points"])
            if df.empty:
                return AnalyticsResult(
                    metric_id=self.metric_id,
                    title=self.title,
                    data=[],
                    summary={"total_items": 0, "open_items": 0, "done_items": 0},
                )

            df["done"] = [
                status in get_variant(item_type).done_statuses
                for item_type, status in zip(df["type"], df["status"])
            ]

            counts = (
                df.groupby(["type", "status"])
                .agg(count=("status", "size"), points=("story_points", "sum"))
                .reset_index()
            )

            chart = BarChart()
            chart_json = chart.render_json(
                counts,
                x_col="type",
                y_col="count",
                color_col="status",
                barmode="stack",
                title="Work Items by Type and Status",
                x_label="Type",
                y_label="Items",
            )

            done_items = int(df["done"].sum())
            return AnalyticsResult(
                metric_id=self.metric_id,
                title=self.title,
                data=counts.to_dict(orient="records"),
                chart_json=chart_json,
                summary={
                    "total_items": len(df),
                    "open_items": len(df) - done_items,
                    "done_items": done_items,
                    "by_type": {
                        item_type: int(count)
                        for item_type, count in df["type"].value_counts().items()
                    },
                },
            )

        except Exception as e:
            return AnalyticsResult(
                metric_id=self.metric_id,
                title=self.title,
                error=str(e),
            )

    def get_filter_options(self) -> dict:
        return {"project_id": {"type": "select", "label": "Project"}}
