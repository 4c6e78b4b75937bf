"""Project model."""

from app.extensions import db
from app.models.mixins import SoftDeleteMixin, isoformat, utcnow


class Project(SoftDeleteMixin, db.Model):
    """Project entity - owns sprints and work items by reference."""

    __tablename__ = "projects"

    STATUSES = ("Active", "On Hold", "Completed", "Cancelled")
    METHODOLOGIES = ("Agile", "Waterfall", "Hybrid")

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(20), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    status = db.Column(db.String(20), default="Active", nullable=False, index=True)
    methodology = db.Column(db.String(20), default="Agile", nullable=False)
    start_date = db.Column(db.DateTime, nullable=True)
    target_end_date = db.Column(db.DateTime, nullable=True)
    actual_end_date = db.Column(db.DateTime, nullable=True)
    tags = db.Column(db.JSON, default=list, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    owner = db.relationship("User")
    sprints = db.relationship("Sprint", back_populates="project", lazy="dynamic")
    work_items = db.relationship("WorkItem", back_populates="project", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Project {self.key}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "owner_id": self.owner_id,
            "status": self.status,
            "methodology": self.methodology,
            "start_date": isoformat(self.start_date),
            "target_end_date": isoformat(self.target_end_date),
            "actual_end_date": isoformat(self.actual_end_date),
            "tags": list(self.tags or []),
            "to_be_deleted": self.to_be_deleted,
            "is_deleted": self.is_deleted,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
