"""Sprint progress metric."""

from typing import Literal

import pandas as pd

from analytics.base import AnalyticsMetric, AnalyticsResult
from analytics.registry import AnalyticsRegistry
from analytics.visualizations import BarChart


@AnalyticsRegistry.register
class SprintProgressMetric(AnalyticsMetric):
    """Planned versus completed story points for each sprint."""

    @property
    def metric_id(self) -> str:
        return "sprint_progress"

    @property
    def title(self) -> str:
        return "Sprint Progress"

    @property
    def description(self) -> str:
        return "Planned and completed story points per sprint"

    @property
    def category(self) -> Literal["work", "sprints"]:
        return "sprints"

    def compute(self, **kwargs) -> AnalyticsResult:
        """Compute points per sprint from the live items in each sprint.

        Kwargs:
            project_id: Restrict to one project.
        """
        from app.extensions import db
        from app.models import Sprint, WorkItem
        from app.services.workflow import get_variant

        try:
            query = (
                db.session.query(
                    Sprint.id,
                    Sprint.name.label("sprint"),
                    Sprint.status.label("sprint_status"),
                    Sprint.start_date,
                    WorkItem.type,
                    WorkItem.status,
                    WorkItem.story_points,
                )
                .join(WorkItem, WorkItem.sprint_id == Sprint.id)
                .filter(Sprint.live(), WorkItem.live())
            )
            if kwargs.get("project_id"):
                query = query.filter(Sprint.project_id == int(kwargs["project_id"]))

            df = pd.DataFrame(
                query.all(),
                columns=[
                    "sprint_id", "sprint", "sprint_status", "start_date",
                    "type", "status", "story_points",
                ],
            )
            if df.empty:
                return AnalyticsResult(
                    metric_id=self.metric_id,
                    title=self.title,
                    data=[],
                    summary={"sprints": 0, "planned_points": 0, "completed_points": 0},
                )

            df["completed_points"] = [
                points if status in get_variant(item_type).done_statuses else 0
                for item_type, status, points in zip(df["type"], df["status"], df["story_points"])
            ]

            per_sprint = (
                df.groupby(["sprint_id", "sprint", "sprint_status", "start_date"])
                .agg(
                    items=("type", "size"),
                    planned_points=("story_points", "sum"),
                    completed_points=("completed_points", "sum"),
                )
                .reset_index()
                .sort_values("start_date")
            )
            per_sprint["completion_rate"] = (
                (per_sprint["completed_points"] / per_sprint["planned_points"] * 100)
                .where(per_sprint["planned_points"] > 0, 0)
                .round(1)
            )

            data = {
                "x": per_sprint["sprint"].tolist(),
                "series": {
                    "Planned": per_sprint["planned_points"].tolist(),
                    "Completed": per_sprint["completed_points"].tolist(),
                },
            }
            chart_json = BarChart().render_json(
                data,
                title="Sprint Progress",
                x_label="Sprint",
                y_label="Story Points",
            )

            planned = float(per_sprint["planned_points"].sum())
            completed = float(per_sprint["completed_points"].sum())
            rows = per_sprint.drop(columns=["start_date"]).to_dict(orient="records")
            return AnalyticsResult(
                metric_id=self.metric_id,
                title=self.title,
                data=rows,
                chart_json=chart_json,
                summary={
                    "sprints": len(per_sprint),
                    "planned_points": planned,
                    "completed_points": completed,
                    "completion_rate": round(completed / planned * 100, 1) if planned else 0,
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
