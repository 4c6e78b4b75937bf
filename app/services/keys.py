"""Human-readable work item keys.

Keys look like ``ACME-12`` for stories and ``ACME-BUG-3`` for the other
variants. The numeric suffix is one more than the highest suffix already
used for the same (project, type), soft-deleted items included. Two
concurrent allocations can read the same maximum; the unique constraints on
``work_items.key`` and ``(project_id, type, sequence)`` reject the loser,
which then allocates again.
"""

import logging

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from app.errors import ConflictError, NotFoundError
from app.extensions import db
from app.models import Project, WorkItem
from app.services.workflow import get_variant

logger = logging.getLogger(__name__)


def format_key(project_key: str, item_type: str, sequence: int) -> str:
    prefix = get_variant(item_type).key_prefix
    if prefix is None:
        return f"{project_key}-{sequence}"
    return f"{project_key}-{prefix}-{sequence}"


def next_sequence(project_id: int, item_type: str) -> int:
    current = (
        db.session.query(func.max(WorkItem.sequence))
        .filter(WorkItem.project_id == project_id, WorkItem.type == item_type)
        .scalar()
    )
    return (current or 0) + 1


def allocate_key(project: Project | None, item_type: str) -> tuple[str, int]:
    """Return the next ``(key, sequence)`` pair for a project and type."""
    if project is None or project.deleted:
        raise NotFoundError("Project", project.id if project is not None else None)
    sequence = next_sequence(project.id, item_type)
    return format_key(project.key, item_type, sequence), sequence


def insert_with_key(item: WorkItem, project: Project, retries: int | None = None) -> WorkItem:
    """Assign a key to ``item`` and flush it, retrying on key collisions.

    Each attempt runs in a savepoint so a rejected insert leaves the rest of
    the session intact.
    """
    if retries is None:
        retries = current_app.config.get("KEY_ALLOCATION_RETRIES", 3)

    for attempt in range(1, retries + 1):
        item.key, item.sequence = allocate_key(project, item.type)
        try:
            with db.session.begin_nested():
                db.session.add(item)
            logger.debug(f"Allocated key {item.key} (attempt {attempt})")
            return item
        except IntegrityError as e:
            logger.warning(
                f"Key {item.key} already taken, retrying allocation "
                f"({attempt}/{retries}): {e.orig}"
            )

    raise ConflictError(
        f"Could not allocate a unique key for {item.type} in project "
        f"{project.key} after {retries} attempts"
    )
