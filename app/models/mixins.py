"""Shared model behaviour: timestamps and the soft-delete flags."""

from datetime import datetime, timezone

from sqlalchemy import and_, or_
from sqlalchemy.ext.hybrid import hybrid_property

from app.extensions import db


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SoftDeleteMixin:
    """Two historical delete flags, always written together.

    Rows written by older clients may carry only one of the flags, so an
    entity counts as deleted when either is set.
    """

    to_be_deleted = db.Column(db.Boolean, default=False, nullable=False)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)

    @hybrid_property
    def deleted(self) -> bool:
        return bool(self.to_be_deleted or self.is_deleted)

    @deleted.expression
    def deleted(cls):
        return or_(cls.to_be_deleted.is_(True), cls.is_deleted.is_(True))

    @classmethod
    def live(cls):
        """Filter clause selecting rows that are not soft-deleted."""
        return and_(cls.to_be_deleted.isnot(True), cls.is_deleted.isnot(True))

    def mark_deleted(self) -> None:
        self.to_be_deleted = True
        self.is_deleted = True
        self.updated_at = utcnow()

    def mark_restored(self) -> None:
        self.to_be_deleted = False
        self.is_deleted = False
        self.updated_at = utcnow()


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
