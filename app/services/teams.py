"""Teams: status reconciliation and membership management."""

import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from app.errors import ConflictError, ConsistencyError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Team, TeamMember, User
from app.models.mixins import utcnow
from app.services import rollback_on_error, soft_delete
from app.services.reconcile import StatusReconciler
from app.services.validation import (
    check_choice,
    parse_id,
    parse_number,
    parse_text,
    require_fields,
    require_payload,
)

logger = logging.getLogger(__name__)

# Roles meaning "use whatever role the user normally has"
PLACEHOLDER_ROLES = (None, "", "Member")
FALLBACK_ROLE = "Developer"


def normalize_team_status(status) -> str:
    """Uppercase and validate a team status before anything is written."""
    if status is None or (isinstance(status, str) and not status.strip()):
        raise ValidationError(
            "Status is required", field="status", allowed=list(Team.STATUSES)
        )
    if not isinstance(status, str):
        raise ValidationError(
            "Status must be a string", field="status", allowed=list(Team.STATUSES)
        )
    return check_choice(status.strip().upper(), Team.STATUSES, "status")


@rollback_on_error
def create_team(payload: dict) -> Team:
    payload = require_payload(payload)
    require_fields(payload, ("name",))

    status = normalize_team_status(payload.get("status") or "ACTIVE")
    team = Team(
        name=parse_text(payload, "name"),
        description=payload.get("description") or "",
        status=status,
        capacity=int(parse_number(payload.get("capacity", 0), "capacity")),
        to_be_deleted=False,
        is_deleted=False,
    )
    db.session.add(team)
    db.session.flush()

    for entry in payload.get("members") or []:
        if not isinstance(entry, dict):
            raise ValidationError("members must be a list of objects", field="members")
        _add_member(team, entry.get("user_id"), entry.get("role"))

    db.session.commit()
    logger.info(f"Created team {team.name} with {len(team.members)} members")
    return team


def get_team(team_id: int) -> Team:
    return soft_delete.get_entity(Team, team_id)


def list_teams(include_deleted: bool = False) -> list[Team]:
    return soft_delete.live_query(Team, include_deleted).order_by(Team.name).all()


@rollback_on_error
def update_team(team_id: int, patch: dict) -> Team:
    """Apply a partial update.

    With a status change, the other fields are written together with the
    status by the reconciler and put back if the status never verifies.
    """
    patch = require_payload(patch)
    team = soft_delete.get_live_entity(Team, team_id)

    status = normalize_team_status(patch["status"]) if patch.get("status") else None

    changes = {}
    if "name" in patch:
        require_fields(patch, ("name",))
        changes["name"] = parse_text(patch, "name")
    if "description" in patch:
        changes["description"] = patch["description"] or ""
    if "capacity" in patch:
        changes["capacity"] = int(parse_number(patch["capacity"], "capacity"))

    if status and status != team.status:
        logger.info(f"Status change detected on team {team.id}: {team.status} -> {status}")
        _reconcile_with_changes(team, status, changes)
    else:
        for name, value in changes.items():
            setattr(team, name, value)
        team.updated_at = utcnow()
        db.session.commit()

    team = db.session.get(Team, team_id)
    logger.info(f"Updated team {team.name}")
    return team


def _reconcile_with_changes(team: Team, status: str, changes: dict) -> None:
    previous = {name: getattr(team, name) for name in changes}
    try:
        StatusReconciler(Team).reconcile(team.id, status, extra_values=changes)
    except ConsistencyError:
        if previous:
            db.session.execute(
                update(Team.__table__)
                .where(Team.__table__.c.id == team.id)
                .values(**previous)
            )
            db.session.commit()
            logger.warning(
                f"Reverted {sorted(previous)} on team {team.id} after its status "
                f"failed to verify"
            )
        raise


def update_team_status(team_id: int, status) -> Team:
    """Set the team status and confirm it against the stored row.

    Raises:
        ValidationError: ``status`` is missing or not a team status.
        NotFoundError: The team does not exist or is deleted.
        ConsistencyError: The stored value never matched the request.
    """
    normalized = normalize_team_status(status)
    team = soft_delete.get_live_entity(Team, team_id)

    if team.status == normalized:
        logger.info(f"Team {team.id} status already '{normalized}', no update needed")
        return team

    logger.info(f"Updating team {team.id} status '{team.status}' -> '{normalized}'")
    result = StatusReconciler(Team).reconcile(team.id, normalized)
    logger.info(
        f"Team {team.id} status confirmed as '{result.observed}' "
        f"via {result.strategy} after {len(result.attempts)} attempt(s)"
    )
    return db.session.get(Team, team.id)


def delete_team(team_id: int) -> Team:
    return soft_delete.soft_delete(Team, team_id)


def restore_team(team_id: int) -> Team:
    return soft_delete.restore(Team, team_id)


def purge_team(team_id: int) -> None:
    soft_delete.purge(Team, team_id)


def list_team_members(team_id: int) -> list[TeamMember]:
    return list(soft_delete.get_live_entity(Team, team_id).members)


@rollback_on_error
def add_team_member(team_id: int, user_id, role: str | None = None) -> Team:
    """Append a user to a team; a user can hold only one seat per team."""
    team = soft_delete.get_live_entity(Team, team_id)
    member = _add_member(team, user_id, role)
    team.updated_at = utcnow()
    db.session.commit()

    logger.info(f"Added user {member.user_id} to team {team.name} as {member.role}")
    return team


@rollback_on_error
def remove_team_member(team_id: int, user_id) -> Team:
    team = soft_delete.get_live_entity(Team, team_id)
    user_id = parse_id(user_id, "user_id")

    member = next((m for m in team.members if m.user_id == user_id), None)
    if member is None:
        raise NotFoundError("Team member", user_id)

    team.members.remove(member)
    team.updated_at = utcnow()
    db.session.commit()

    logger.info(f"Removed user {user_id} from team {team.name}")
    return team


def _resolve_role(user: User, role) -> str:
    if role in PLACEHOLDER_ROLES:
        if user.role in TeamMember.ROLES:
            return user.role
        return FALLBACK_ROLE
    return check_choice(role, TeamMember.ROLES, "role")


def _add_member(team: Team, user_id, role) -> TeamMember:
    user_id = parse_id(user_id, "user_id")
    if user_id is None:
        raise ValidationError("user_id is required", fields=["user_id"])
    user = soft_delete.get_entity(User, user_id)

    if team.has_member(user.id):
        raise ConflictError(f"User {user.id} is already a member of team {team.name}")

    member = TeamMember(user_id=user.id, role=_resolve_role(user, role), joined_at=utcnow())
    try:
        with db.session.begin_nested():
            team.members.append(member)
    except IntegrityError:
        # A concurrent request added the same user first
        raise ConflictError(
            f"User {user.id} is already a member of team {team.name}"
        ) from None
    return member
