"""Projects. Deleting a project never cascades to its sprints or items."""

import logging
import re

from app.errors import ConflictError, ValidationError
from app.extensions import db
from app.models import Project, Sprint, User, WorkItem
from app.models.mixins import utcnow
from app.services import rollback_on_error, soft_delete
from app.services.validation import (
    check_choice,
    parse_datetime,
    parse_id,
    parse_labels,
    parse_text,
    require_fields,
    require_payload,
)

logger = logging.getLogger(__name__)

PROJECT_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9]{1,9}$")


def normalize_project_key(key) -> str:
    if not isinstance(key, str):
        raise ValidationError("Project key must be a string", field="key")
    key = key.strip().upper()
    if not PROJECT_KEY_PATTERN.match(key):
        raise ValidationError(
            "Project key must be 2-10 letters or digits, starting with a letter",
            field="key",
        )
    return key


def _check_date_order(start_date, target_end_date) -> None:
    if start_date and target_end_date and start_date > target_end_date:
        raise ValidationError(
            "start_date must not be after target_end_date",
            fields=["start_date", "target_end_date"],
        )


@rollback_on_error
def create_project(payload: dict, caller_id=None) -> Project:
    payload = require_payload(payload)
    require_fields(payload, ("key", "name"))

    key = normalize_project_key(payload["key"])
    if Project.query.filter_by(key=key).first() is not None:
        raise ConflictError(f"Project key {key} is already in use")

    owner_id = parse_id(payload.get("owner_id") or caller_id, "owner_id")
    if owner_id is not None:
        soft_delete.get_entity(User, owner_id)

    start_date = parse_datetime(payload.get("start_date"), "start_date")
    target_end_date = parse_datetime(payload.get("target_end_date"), "target_end_date")
    _check_date_order(start_date, target_end_date)

    project = Project(
        key=key,
        name=parse_text(payload, "name"),
        description=payload.get("description"),
        owner_id=owner_id,
        status=check_choice(payload.get("status") or "Active", Project.STATUSES, "status"),
        methodology=check_choice(
            payload.get("methodology") or "Agile", Project.METHODOLOGIES, "methodology"
        ),
        start_date=start_date,
        target_end_date=target_end_date,
        tags=parse_labels(payload.get("tags"), "tags"),
    )
    db.session.add(project)
    db.session.commit()

    logger.info(f"Created project {project.key}: {project.name}")
    return project


def get_project(project_id: int) -> Project:
    return soft_delete.get_entity(Project, project_id)


def list_projects(status: str | None = None, include_deleted: bool = False) -> list[Project]:
    query = soft_delete.live_query(Project, include_deleted)
    if status:
        query = query.filter(Project.status == status)
    projects = query.order_by(Project.created_at.desc(), Project.id.desc()).all()
    logger.debug(f"Retrieved {len(projects)} projects")
    return projects


@rollback_on_error
def update_project(project_id: int, patch: dict) -> Project:
    patch = require_payload(patch)
    project = soft_delete.get_live_entity(Project, project_id)

    if "key" in patch and normalize_project_key(patch["key"]) != project.key:
        raise ValidationError(
            "Project key cannot change once work items are keyed from it", field="key"
        )

    start_date = (
        parse_datetime(patch["start_date"], "start_date")
        if "start_date" in patch
        else project.start_date
    )
    target_end_date = (
        parse_datetime(patch["target_end_date"], "target_end_date")
        if "target_end_date" in patch
        else project.target_end_date
    )
    _check_date_order(start_date, target_end_date)

    if "name" in patch:
        require_fields(patch, ("name",))
        project.name = parse_text(patch, "name")
    if "description" in patch:
        project.description = patch["description"]
    if patch.get("status"):
        project.status = check_choice(patch["status"], Project.STATUSES, "status")
    if patch.get("methodology"):
        project.methodology = check_choice(
            patch["methodology"], Project.METHODOLOGIES, "methodology"
        )
    if "owner_id" in patch:
        owner_id = parse_id(patch["owner_id"], "owner_id")
        if owner_id is not None:
            soft_delete.get_entity(User, owner_id)
        project.owner_id = owner_id
    if "tags" in patch:
        project.tags = parse_labels(patch["tags"], "tags")
    if "actual_end_date" in patch:
        project.actual_end_date = parse_datetime(patch["actual_end_date"], "actual_end_date")

    project.start_date = start_date
    project.target_end_date = target_end_date
    project.updated_at = utcnow()
    db.session.commit()

    logger.info(f"Updated project {project.key}")
    return project


@rollback_on_error
def update_project_status(project_id: int, status: str) -> Project:
    project = soft_delete.get_live_entity(Project, project_id)
    project.status = check_choice(status, Project.STATUSES, "status")
    project.updated_at = utcnow()
    db.session.commit()

    logger.info(f"Updated status of project {project.key} to {status}")
    return project


def delete_project(project_id: int) -> Project:
    """Soft-delete a project. Its sprints and work items are left untouched."""
    project = soft_delete.soft_delete(Project, project_id)
    orphaned = project.work_items.filter(WorkItem.live()).count()
    if orphaned:
        logger.warning(
            f"Project {project.key} deleted with {orphaned} live work items; "
            f"they remain retrievable"
        )
    return project


def restore_project(project_id: int) -> Project:
    return soft_delete.restore(Project, project_id)


def purge_project(project_id: int) -> None:
    project = soft_delete.get_entity(Project, project_id)
    referencing = (
        project.work_items.count()
        + Sprint.query.filter(Sprint.project_id == project.id).count()
    )
    if referencing:
        raise ConflictError(
            f"Project {project.key} is still referenced by {referencing} sprints or work items"
        )
    soft_delete.purge(Project, project_id)
