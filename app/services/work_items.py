"""Work item lifecycle: create, edit, status changes, soft delete, listing."""

import logging

from app.errors import NotFoundError, ValidationError
from app.extensions import db
from app.models import Project, User, WorkItem
from app.models.mixins import utcnow
from app.services import rollback_on_error, soft_delete
from app.services.keys import insert_with_key
from app.services.sprints import resolve_sprint
from app.services.validation import (
    parse_datetime,
    parse_id,
    parse_labels,
    parse_number,
    parse_text,
    require_fields,
    require_payload,
)
from app.services.workflow import (
    WorkItemVariant,
    check_transition,
    get_variant,
    validate_priority,
    validate_severity,
    validate_status,
)

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("id", "key", "sequence", "project_id", "reporter_id")
DATE_FIELDS = ("start_date", "due_date", "completed_date")
METRIC_FIELDS = ("time_spent", "time_estimate", "cycle_time", "lead_time")


@rollback_on_error
def create_work_item(item_type: str, payload: dict, caller_id) -> WorkItem:
    """Create a work item of ``item_type`` reported by ``caller_id``."""
    variant = get_variant(item_type)
    payload = require_payload(payload)
    require_fields(payload, ("title", "project_id"))

    reporter = soft_delete.get_entity(User, parse_id(caller_id, "reporter_id"))
    project = soft_delete.get_live_entity(
        Project, parse_id(payload["project_id"], "project_id")
    )

    status = payload.get("status") or variant.initial_status
    validate_status(variant, status)
    priority = validate_priority(variant, payload.get("priority") or variant.default_priority)

    item = WorkItem(
        type=variant.name,
        title=parse_text(payload, "title"),
        project_id=project.id,
        reporter_id=reporter.id,
        status=status,
        priority=priority,
        story_points=0,
        labels=[],
    )
    if variant.severities:
        item.severity = validate_severity(
            variant, payload.get("severity") or variant.default_severity
        )
    elif payload.get("severity"):
        validate_severity(variant, payload["severity"])

    _apply_fields(item, variant, payload)

    insert_with_key(item, project)

    if payload.get("dependency_ids"):
        _set_dependencies(item, payload["dependency_ids"])

    db.session.commit()
    logger.info(f"Created {variant.name} {item.key}: {item.title}")
    return item


def get_work_item(item_id: int) -> WorkItem:
    """Direct lookup; soft-deleted items are returned too."""
    return soft_delete.get_entity(WorkItem, item_id, "Work item")


def get_work_item_by_key(key: str) -> WorkItem:
    item = WorkItem.query.filter_by(key=key).first()
    if item is None:
        raise NotFoundError("Work item", key)
    return item


def list_work_items(
    project_id=None,
    sprint_id=None,
    item_type: str | None = None,
    status: str | None = None,
    assignee_id=None,
    include_deleted: bool = False,
    limit: int | None = None,
) -> list[WorkItem]:
    """List items; soft-deleted ones are excluded unless asked for.

    ``sprint_id="backlog"`` selects items not assigned to any sprint.
    """
    query = soft_delete.live_query(WorkItem, include_deleted)

    if project_id:
        query = query.filter(WorkItem.project_id == parse_id(project_id, "project_id"))
    if sprint_id == "backlog":
        query = query.filter(WorkItem.sprint_id.is_(None))
    elif sprint_id:
        query = query.filter(WorkItem.sprint_id == parse_id(sprint_id, "sprint_id"))
    if item_type:
        query = query.filter(WorkItem.type == get_variant(item_type).name)
    if status:
        query = query.filter(WorkItem.status == status)
    if assignee_id:
        query = query.filter(WorkItem.assignee_id == parse_id(assignee_id, "assignee_id"))

    query = query.order_by(WorkItem.project_id, WorkItem.type, WorkItem.sequence)
    if limit:
        query = query.limit(limit)
    return query.all()


@rollback_on_error
def update_work_item(item_id: int, patch: dict) -> WorkItem:
    """Apply a partial update. The item's type can never change."""
    patch = require_payload(patch)
    item = soft_delete.get_live_entity(WorkItem, item_id, "Work item")
    variant = get_variant(item.type)

    if "type" in patch and patch["type"] != item.type:
        logger.warning(
            f"Ignoring type change on {item.key}: {item.type} -> {patch['type']!r}"
        )
    for name in IMMUTABLE_FIELDS:
        if name in patch and patch[name] != getattr(item, name):
            logger.warning(f"Ignoring change to immutable field {name} on {item.key}")

    if "title" in patch:
        require_fields(patch, ("title",))
        item.title = parse_text(patch, "title")
    if patch.get("status"):
        validate_status(variant, patch["status"])
        check_transition(variant.transitions, item.status, patch["status"], variant.name)
        item.status = patch["status"]
    if patch.get("priority"):
        item.priority = validate_priority(variant, patch["priority"])
    if patch.get("severity"):
        item.severity = validate_severity(variant, patch["severity"])
    if "sprint_id" in patch:
        sprint = resolve_sprint(item.project_id, patch["sprint_id"])
        item.sprint_id = sprint.id if sprint else None

    _apply_fields(item, variant, patch)

    if "dependency_ids" in patch:
        _set_dependencies(item, patch["dependency_ids"] or [])

    item.updated_at = utcnow()
    db.session.commit()

    logger.info(f"Updated {item.key}")
    return item


@rollback_on_error
def update_work_item_status(item_id: int, status: str) -> WorkItem:
    """Change only the status (and ``updated_at``) of a work item."""
    item = soft_delete.get_live_entity(WorkItem, item_id, "Work item")
    variant = get_variant(item.type)

    validate_status(variant, status)
    check_transition(variant.transitions, item.status, status, variant.name)

    previous = item.status
    item.status = status
    item.updated_at = utcnow()
    db.session.commit()

    logger.info(f"{item.key} status: {previous} -> {status}")
    return item


def soft_delete_work_item(item_id: int) -> dict:
    item = soft_delete.soft_delete(WorkItem, item_id, "Work item")
    return {"message": f"{item.type} {item.key} marked for deletion", "id": item.id}


def restore_work_item(item_id: int) -> WorkItem:
    return soft_delete.restore(WorkItem, item_id, "Work item")


def purge_work_item(item_id: int) -> None:
    item = get_work_item(item_id)
    item.dependencies = []
    item.dependents = []
    WorkItem.query.filter(WorkItem.epic_id == item.id).update(
        {"epic_id": None}, synchronize_session="fetch"
    )
    db.session.flush()
    soft_delete.purge(WorkItem, item_id, "Work item")


def _apply_fields(item: WorkItem, variant: WorkItemVariant, payload: dict) -> None:
    """Copy the freely editable fields shared by create and update."""
    if "description" in payload:
        item.description = payload["description"]
    if "story_points" in payload:
        item.story_points = parse_number(payload["story_points"], "story_points")
    if "labels" in payload:
        item.labels = parse_labels(payload["labels"])
    if "assignee_id" in payload:
        assignee_id = parse_id(payload["assignee_id"], "assignee_id")
        if assignee_id is not None:
            soft_delete.get_entity(User, assignee_id)
        item.assignee_id = assignee_id
    if "epic_id" in payload:
        item.epic_id = _resolve_epic(item, variant, payload["epic_id"])
    if "sprint_id" in payload and item.id is None:
        sprint = resolve_sprint(item.project_id, payload["sprint_id"])
        item.sprint_id = sprint.id if sprint else None
    for name in DATE_FIELDS:
        if name in payload:
            setattr(item, name, parse_datetime(payload[name], name))
    for name in METRIC_FIELDS:
        if name in payload:
            setattr(item, name, parse_number(payload[name], name))


def _resolve_epic(item: WorkItem, variant: WorkItemVariant, epic_id) -> int | None:
    epic_id = parse_id(epic_id, "epic_id")
    if epic_id is None:
        return None
    if variant.name == "Epic":
        raise ValidationError("An epic cannot belong to another epic", field="epic_id")
    epic = soft_delete.get_live_entity(WorkItem, epic_id, "Epic")
    if epic.type != "Epic" or epic.project_id != item.project_id:
        raise ValidationError(
            f"Work item {epic_id} is not an epic of the same project", field="epic_id"
        )
    return epic.id


def _set_dependencies(item: WorkItem, dependency_ids) -> None:
    """Replace the item's dependencies, rejecting self references and cycles."""
    if not isinstance(dependency_ids, list):
        raise ValidationError("dependency_ids must be a list", field="dependency_ids")

    dependencies = []
    for raw_id in dict.fromkeys(dependency_ids):
        dep_id = parse_id(raw_id, "dependency_ids")
        if dep_id == item.id:
            raise ValidationError(
                f"{item.key} cannot depend on itself", field="dependency_ids"
            )
        dependency = soft_delete.get_entity(WorkItem, dep_id, "Work item")
        if _reaches(dependency, item.id):
            raise ValidationError(
                f"Depending on {dependency.key} would create a dependency cycle",
                field="dependency_ids",
            )
        dependencies.append(dependency)

    item.dependencies = dependencies


def _reaches(start: WorkItem, target_id: int) -> bool:
    """True when ``target_id`` is reachable from ``start`` via dependencies."""
    seen = set()
    stack = [start]
    while stack:
        current = stack.pop()
        if current.id == target_id:
            return True
        if current.id in seen:
            continue
        seen.add(current.id)
        stack.extend(current.dependencies)
    return False
