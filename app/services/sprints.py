"""Sprint lifecycle and sprint membership of work items."""

import logging

from app.errors import ValidationError
from app.extensions import db
from app.models import Project, Sprint, WorkItem
from app.models.mixins import utcnow
from app.services import rollback_on_error, soft_delete
from app.services.validation import (
    check_choice,
    parse_datetime,
    parse_id,
    parse_number,
    parse_text,
    require_fields,
    require_payload,
)
from app.services.workflow import SPRINT_TRANSITIONS, check_transition, get_variant

logger = logging.getLogger(__name__)

SPRINT_ACTIONS = ("add", "remove")


def _check_date_order(start_date, end_date) -> None:
    if start_date and end_date and start_date >= end_date:
        raise ValidationError(
            "start_date must be before end_date", fields=["start_date", "end_date"]
        )


@rollback_on_error
def create_sprint(payload: dict) -> Sprint:
    """Create a sprint in PLANNING (or a valid explicit status)."""
    payload = require_payload(payload)
    require_fields(payload, ("name", "project_id", "start_date", "end_date"))

    start_date = parse_datetime(payload["start_date"], "start_date")
    end_date = parse_datetime(payload["end_date"], "end_date")
    _check_date_order(start_date, end_date)

    project = soft_delete.get_live_entity(
        Project, parse_id(payload["project_id"], "project_id")
    )

    status = payload.get("status") or "PLANNING"
    check_choice(status, Sprint.STATUSES, "status")

    sprint = Sprint(
        name=parse_text(payload, "name"),
        project_id=project.id,
        goal=payload.get("goal") or "",
        status=status,
        start_date=start_date,
        end_date=end_date,
        capacity=int(parse_number(payload.get("capacity", 0), "capacity")),
    )
    db.session.add(sprint)
    db.session.commit()

    logger.info(f"Created sprint {sprint.name} for project {project.key}")
    return sprint


def get_sprint(sprint_id: int) -> Sprint:
    return soft_delete.get_entity(Sprint, sprint_id)


def list_sprints(
    project_id: int | None = None,
    status: str | None = None,
    include_deleted: bool = False,
) -> list[Sprint]:
    query = soft_delete.live_query(Sprint, include_deleted)
    if project_id:
        query = query.filter(Sprint.project_id == project_id)
    if status:
        query = query.filter(Sprint.status == status)
    return query.order_by(Sprint.start_date).all()


@rollback_on_error
def update_sprint(sprint_id: int, patch: dict) -> Sprint:
    patch = require_payload(patch)
    sprint = soft_delete.get_live_entity(Sprint, sprint_id)

    if "project_id" in patch and parse_id(patch["project_id"], "project_id") != sprint.project_id:
        logger.warning(f"Ignoring attempt to move sprint {sprint_id} to another project")

    start_date = (
        parse_datetime(patch["start_date"], "start_date")
        if patch.get("start_date")
        else sprint.start_date
    )
    end_date = (
        parse_datetime(patch["end_date"], "end_date")
        if patch.get("end_date")
        else sprint.end_date
    )
    _check_date_order(start_date, end_date)

    if "name" in patch:
        require_fields(patch, ("name",))
        sprint.name = parse_text(patch, "name")
    if "goal" in patch:
        sprint.goal = patch["goal"] or ""
    if "capacity" in patch:
        sprint.capacity = int(parse_number(patch["capacity"], "capacity"))
    for metric in ("planned_points", "completed_points", "velocity"):
        if metric in patch:
            setattr(sprint, metric, parse_number(patch[metric], metric))
    if patch.get("status"):
        _apply_status(sprint, patch["status"])

    sprint.start_date = start_date
    sprint.end_date = end_date
    sprint.updated_at = utcnow()
    db.session.commit()

    logger.info(f"Updated sprint {sprint.name}")
    return sprint


def _apply_status(sprint: Sprint, status: str) -> None:
    check_choice(status, Sprint.STATUSES, "status")
    check_transition(SPRINT_TRANSITIONS, sprint.status, status, "Sprint")
    if status == "COMPLETED" and sprint.status != "COMPLETED":
        sprint.completed_date = utcnow()
    sprint.status = status


@rollback_on_error
def update_sprint_status(sprint_id: int, status: str) -> Sprint:
    sprint = soft_delete.get_live_entity(Sprint, sprint_id)
    previous = sprint.status
    _apply_status(sprint, status)
    sprint.updated_at = utcnow()
    db.session.commit()

    logger.info(f"Sprint {sprint.id} status: {previous} -> {sprint.status}")
    return sprint


def delete_sprint(sprint_id: int) -> Sprint:
    return soft_delete.soft_delete(Sprint, sprint_id)


def restore_sprint(sprint_id: int) -> Sprint:
    return soft_delete.restore(Sprint, sprint_id)


def purge_sprint(sprint_id: int) -> None:
    sprint = soft_delete.get_entity(Sprint, sprint_id)
    # Items go back to the backlog rather than losing their reference silently
    released = WorkItem.query.filter(WorkItem.sprint_id == sprint.id).update(
        {"sprint_id": None}, synchronize_session="fetch"
    )
    logger.info(f"Released {released} work items from sprint {sprint_id} before purge")
    soft_delete.purge(Sprint, sprint_id)


def resolve_sprint(project_id: int, sprint_id) -> Sprint | None:
    """Look up a live sprint that may hold items of ``project_id``."""
    sprint_id = parse_id(sprint_id, "sprint_id")
    if sprint_id is None:
        return None
    sprint = soft_delete.get_live_entity(Sprint, sprint_id)
    if sprint.project_id != project_id:
        raise ValidationError(
            f"Sprint {sprint_id} belongs to a different project", field="sprint_id"
        )
    return sprint


@rollback_on_error
def assign_to_sprint(work_item_id: int, sprint_id, action: str = "add") -> WorkItem:
    """Add a work item to a sprint, or send it back to the backlog."""
    check_choice(action, SPRINT_ACTIONS, "action")
    item = soft_delete.get_live_entity(WorkItem, work_item_id, "Work item")

    if action == "add":
        if sprint_id is None:
            raise ValidationError("sprint_id is required to add an item", fields=["sprint_id"])
        sprint = resolve_sprint(item.project_id, sprint_id)
        item.sprint_id = sprint.id
        logger.info(f"Added {item.key} to sprint {sprint.name}")
    else:
        logger.info(f"Moved {item.key} from sprint {item.sprint_id} to backlog")
        item.sprint_id = None

    item.updated_at = utcnow()
    db.session.commit()
    return item


def refresh_sprint_metrics(sprint_id: int) -> Sprint:
    """Recompute planned and completed points from the sprint's live items."""
    sprint = soft_delete.get_live_entity(Sprint, sprint_id)
    items = sprint.work_items.filter(WorkItem.live()).all()

    planned = sum(item.story_points or 0 for item in items)
    completed = sum(
        item.story_points or 0
        for item in items
        if item.status in get_variant(item.type).done_statuses
    )

    sprint.planned_points = planned
    sprint.completed_points = completed
    if sprint.status == "COMPLETED":
        sprint.velocity = completed
    sprint.updated_at = utcnow()
    db.session.commit()

    logger.info(
        f"Sprint {sprint.name} metrics: {completed}/{planned} points across {len(items)} items"
    )
    return sprint
