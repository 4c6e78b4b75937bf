"""Soft-delete policy shared by every entity carrying the delete flags.

Default queries go through :func:`live_query`, which applies the
not-deleted predicate before any other filter. Direct lookups by id ignore
the flags so deleted entities stay reachable for restore flows. Physical
removal is only available through :func:`purge`.
"""

import logging
from typing import TypeVar

from app.errors import NotFoundError
from app.extensions import db

logger = logging.getLogger(__name__)

M = TypeVar("M")


def live_query(model, include_deleted: bool = False):
    """Base query for list/search operations."""
    query = model.query
    if not include_deleted:
        query = query.filter(model.live())
    return query


def get_entity(model: type[M], entity_id, resource: str | None = None) -> M:
    """Fetch by id regardless of the delete flags."""
    entity = db.session.get(model, entity_id) if entity_id is not None else None
    if entity is None:
        raise NotFoundError(resource or model.__name__, entity_id)
    return entity


def get_live_entity(model: type[M], entity_id, resource: str | None = None) -> M:
    """Fetch by id for mutation; soft-deleted entities count as missing."""
    entity = get_entity(model, entity_id, resource)
    if entity.deleted:
        raise NotFoundError(resource or model.__name__, entity_id)
    return entity


def soft_delete(model: type[M], entity_id, resource: str | None = None) -> M:
    entity = get_live_entity(model, entity_id, resource)
    entity.mark_deleted()
    db.session.commit()
    logger.info(f"Soft-deleted {model.__name__} {entity_id}")
    return entity


def restore(model: type[M], entity_id, resource: str | None = None) -> M:
    entity = get_entity(model, entity_id, resource)
    if not entity.deleted:
        logger.info(f"{model.__name__} {entity_id} is not deleted, nothing to restore")
        return entity
    entity.mark_restored()
    db.session.commit()
    logger.info(f"Restored {model.__name__} {entity_id}")
    return entity


def purge(model, entity_id, resource: str | None = None) -> None:
    """Physically delete a row. Callers detach dependent rows first."""
    entity = get_entity(model, entity_id, resource)
    db.session.delete(entity)
    db.session.commit()
    logger.warning(f"Purged {model.__name__} {entity_id}")
