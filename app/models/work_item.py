"""Work item model - one table for every variant, tagged by ``type``."""

from app.extensions import db
from app.models.mixins import SoftDeleteMixin, isoformat, utcnow

# Association table for work item dependencies
work_item_dependencies = db.Table(
    "work_item_dependencies",
    db.Column(
        "item_id", db.Integer, db.ForeignKey("work_items.id"), primary_key=True
    ),
    db.Column(
        "depends_on_id", db.Integer, db.ForeignKey("work_items.id"), primary_key=True
    ),
)


class WorkItem(SoftDeleteMixin, db.Model):
    """Story, task, defect, feature or epic belonging to a project."""

    __tablename__ = "work_items"
    __table_args__ = (
        db.UniqueConstraint(
            "project_id", "type", "sequence", name="uq_work_items_project_type_sequence"
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(50), unique=True, nullable=False, index=True)
    sequence = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(20), nullable=False, index=True)
    title = db.Column(db.String(512), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(50), nullable=False, index=True)
    priority = db.Column(db.String(20), nullable=False)
    severity = db.Column(db.String(20), nullable=True)  # defects only
    story_points = db.Column(db.Float, default=0, nullable=False)
    labels = db.Column(db.JSON, default=list, nullable=False)

    # Foreign keys
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True
    )
    sprint_id = db.Column(db.Integer, db.ForeignKey("sprints.id"), nullable=True, index=True)
    epic_id = db.Column(db.Integer, db.ForeignKey("work_items.id"), nullable=True)
    assignee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    reporter_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    start_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    completed_date = db.Column(db.DateTime, nullable=True)

    # Metrics (update-only, never drive control flow)
    time_spent = db.Column(db.Float, default=0, nullable=False)  # minutes
    time_estimate = db.Column(db.Float, default=0, nullable=False)  # minutes
    cycle_time = db.Column(db.Float, default=0, nullable=False)  # days
    lead_time = db.Column(db.Float, default=0, nullable=False)  # days

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    project = db.relationship("Project", back_populates="work_items")
    sprint = db.relationship("Sprint", back_populates="work_items")
    epic = db.relationship("WorkItem", remote_side=[id])
    assignee = db.relationship("User", foreign_keys=[assignee_id])
    reporter = db.relationship("User", foreign_keys=[reporter_id])

    # dependencies: items that must be finished before this one
    dependencies = db.relationship(
        "WorkItem",
        secondary=work_item_dependencies,
        primaryjoin=id == work_item_dependencies.c.item_id,
        secondaryjoin=id == work_item_dependencies.c.depends_on_id,
        backref="dependents",
    )

    def __repr__(self) -> str:
        return f"<WorkItem {self.key}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "severity": self.severity,
            "story_points": self.story_points,
            "labels": list(self.labels or []),
            "project_id": self.project_id,
            "project_key": self.project.key if self.project else None,
            "sprint_id": self.sprint_id,
            "epic_id": self.epic_id,
            "assignee_id": self.assignee_id,
            "reporter_id": self.reporter_id,
            "dependency_ids": sorted(dep.id for dep in self.dependencies),
            "start_date": isoformat(self.start_date),
            "due_date": isoformat(self.due_date),
            "completed_date": isoformat(self.completed_date),
            "metrics": {
                "time_spent": self.time_spent,
                "time_estimate": self.time_estimate,
                "cycle_time": self.cycle_time,
                "lead_time": self.lead_time,
            },
            "to_be_deleted": self.to_be_deleted,
            "is_deleted": self.is_deleted,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
