"""Team and team membership models."""

from app.extensions import db
from app.models.mixins import SoftDeleteMixin, isoformat, utcnow


class Team(SoftDeleteMixin, db.Model):
    """Team entity - a named group of users with a denormalized status."""

    __tablename__ = "teams"

    STATUSES = ("ACTIVE", "INACTIVE", "ON_HOLD")

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), default="ACTIVE", nullable=False)
    capacity = db.Column(db.Integer, default=0, nullable=False)  # points per sprint
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    members = db.relationship(
        "TeamMember",
        back_populates="team",
        order_by="TeamMember.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Team {self.name}>"

    def has_member(self, user_id: int) -> bool:
        return any(member.user_id == user_id for member in self.members)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "capacity": self.capacity,
            "members": [member.to_dict() for member in self.members],
            "to_be_deleted": self.to_be_deleted,
            "is_deleted": self.is_deleted,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class TeamMember(db.Model):
    """A user's seat on a team; one row per (team, user)."""

    __tablename__ = "team_members"
    __table_args__ = (
        db.UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )

    ROLES = (
        "Product Owner",
        "Scrum Master",
        "Team Lead",
        "Developer",
        "Designer",
        "QA",
        "Other",
    )

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    role = db.Column(db.String(50), default="Developer", nullable=False)
    joined_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    team = db.relationship("Team", back_populates="members")
    user = db.relationship("User", back_populates="memberships")

    def __repr__(self) -> str:
        return f"<TeamMember team={self.team_id} user={self.user_id}>"

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "role": self.role,
            "joined_at": isoformat(self.joined_at),
        }
