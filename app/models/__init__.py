"""SQLAlchemy ORM models."""

from app.models.user import User
from app.models.project import Project
from app.models.sprint import Sprint
from app.models.team import Team, TeamMember
from app.models.work_item import WorkItem

__all__ = ["User", "Project", "Sprint", "Team", "TeamMember", "WorkItem"]
