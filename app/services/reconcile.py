"""Verified writes for denormalized status fields.

A status write is only reported as successful once a fresh read of the
stored row shows the requested value. The reconciler walks an ordered,
bounded list of write strategies, each one lower-level than the previous,
and verifies after every attempt:

1. ``orm``          - set the attribute on the mapped object and commit.
2. ``core_update``  - Core ``UPDATE`` that skips the unit of work.
3. ``full_replace`` - read the whole row, merge the change, write every column.
4. ``raw_sql``      - a textual ``UPDATE`` statement.

When no strategy converges a :class:`~app.errors.ConsistencyError` carries
the requested and last observed values back to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import ConsistencyError
from app.extensions import db
from app.models.mixins import utcnow

logger = logging.getLogger(__name__)

WriteStrategy = Callable[[Session, type, Any, dict], None]


def _primary_key(model):
    return list(model.__table__.primary_key.columns)[0]


def write_orm(session: Session, model, entity_id, values: dict) -> None:
    entity = session.get(model, entity_id, populate_existing=True)
    for name, value in values.items():
        setattr(entity, name, value)
    session.commit()


def write_core_update(session: Session, model, entity_id, values: dict) -> None:
    session.execute(
        update(model.__table__)
        .where(_primary_key(model) == entity_id)
        .values(**values)
    )
    session.commit()


def write_full_replace(session: Session, model, entity_id, values: dict) -> None:
    pk = _primary_key(model)
    row = session.execute(
        select(model.__table__).where(pk == entity_id)
    ).mappings().one()
    document = {name: value for name, value in row.items() if name != pk.name}
    document.update(values)
    session.execute(update(model.__table__).where(pk == entity_id).values(**document))
    session.commit()


def write_raw_sql(session: Session, model, entity_id, values: dict) -> None:
    table = model.__table__
    unknown = [name for name in values if name not in table.c]
    if unknown:
        raise ValueError(f"Unknown columns for {table.name}: {unknown}")
    assignments = ", ".join(f"{name} = :{name}" for name in values)
    pk = _primary_key(model)
    session.execute(
        text(f"UPDATE {table.name} SET {assignments} WHERE {pk.name} = :entity_id"),
        {**values, "entity_id": entity_id},
    )
    session.commit()


DEFAULT_STRATEGIES: tuple[tuple[str, WriteStrategy], ...] = (
    ("orm", write_orm),
    ("core_update", write_core_update),
    ("full_replace", write_full_replace),
    ("raw_sql", write_raw_sql),
)


@dataclass
class ReconcileAttempt:
    """One write-then-verify step."""

    strategy: str
    before: Any
    after: Any
    error: str | None = None


@dataclass
class ReconcileResult:
    requested: Any
    observed: Any
    attempts: list[ReconcileAttempt] = field(default_factory=list)

    @property
    def strategy(self) -> str | None:
        return self.attempts[-1].strategy if self.attempts else None


def normalize(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


class StatusReconciler:
    """Write a scalar column and confirm it against a fresh read."""

    def __init__(
        self,
        model,
        field_name: str = "status",
        strategies: tuple[tuple[str, WriteStrategy], ...] | None = None,
        session: Session | None = None,
    ):
        self.model = model
        self.field_name = field_name
        self.strategies = strategies if strategies is not None else DEFAULT_STRATEGIES
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else db.session

    def read(self, entity_id) -> Any:
        """Read the stored value straight from the table, bypassing the identity map."""
        column = self.model.__table__.c[self.field_name]
        return self.session.execute(
            select(column).where(_primary_key(self.model) == entity_id)
        ).scalar_one_or_none()

    def reconcile(self, entity_id, requested, extra_values: dict | None = None) -> ReconcileResult:
        """Write ``requested`` until a re-read confirms it.

        Raises:
            ConsistencyError: Every strategy ran and the stored value still differs.
        """
        requested = normalize(requested)
        name = f"{self.model.__name__} {entity_id}"
        result = ReconcileResult(requested=requested, observed=self.read(entity_id))

        for strategy_name, strategy in self.strategies:
            before = result.observed
            values = {self.field_name: requested, "updated_at": utcnow()}
            values.update(extra_values or {})

            error = None
            try:
                strategy(self.session, self.model, entity_id, values)
            except (SQLAlchemyError, ValueError) as e:
                self.session.rollback()
                error = str(e)
                logger.warning(f"[{strategy_name}] write to {name} failed: {e}")

            result.observed = self.read(entity_id)
            result.attempts.append(
                ReconcileAttempt(strategy_name, before, result.observed, error)
            )
            logger.info(
                f"[{strategy_name}] {name} {self.field_name}: "
                f"'{before}' -> '{result.observed}' (requested '{requested}')"
            )

            if result.observed == requested:
                self.session.expire_all()
                return result

            logger.warning(
                f"[{strategy_name}] verification failed for {name}: "
                f"expected '{requested}', found '{result.observed}'"
            )

        self.session.expire_all()
        logger.error(
            f"All {len(result.attempts)} write strategies failed for {name}: "
            f"{self.field_name} is '{result.observed}', requested '{requested}'"
        )
        raise ConsistencyError(
            f"Failed to update {self.field_name} of {name} after "
            f"{len(result.attempts)} attempts",
            requested=requested,
            observed=result.observed,
        )
