"""Sprint model."""

from app.extensions import db
from app.models.mixins import SoftDeleteMixin, isoformat, utcnow


class Sprint(SoftDeleteMixin, db.Model):
    """Time-boxed iteration of a project; work items point back at it."""

    __tablename__ = "sprints"

    STATUSES = ("PLANNING", "IN_PROGRESS", "COMPLETED", "CANCELLED")

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True
    )
    goal = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), default="PLANNING", nullable=False, index=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    completed_date = db.Column(db.DateTime, nullable=True)
    capacity = db.Column(db.Integer, default=0, nullable=False)

    # Metrics (update-only)
    planned_points = db.Column(db.Float, default=0, nullable=False)
    completed_points = db.Column(db.Float, default=0, nullable=False)
    velocity = db.Column(db.Float, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    project = db.relationship("Project", back_populates="sprints")
    work_items = db.relationship("WorkItem", back_populates="sprint", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Sprint {self.name}>"

    @property
    def progress(self) -> float:
        """Completed share of planned points, as a percentage."""
        if not self.planned_points:
            return 0.0
        return round(self.completed_points / self.planned_points * 100, 1)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "project_id": self.project_id,
            "goal": self.goal,
            "status": self.status,
            "start_date": isoformat(self.start_date),
            "end_date": isoformat(self.end_date),
            "completed_date": isoformat(self.completed_date),
            "capacity": self.capacity,
            "metrics": {
                "planned_points": self.planned_points,
                "completed_points": self.completed_points,
                "velocity": self.velocity,
                "progress": self.progress,
            },
            "to_be_deleted": self.to_be_deleted,
            "is_deleted": self.is_deleted,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
