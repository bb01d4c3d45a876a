"""
Soft Delete Mixin.

Adds `deleted_at` timestamp column and query helpers for soft delete.
Every licensing table is "paranoid": rows are marked as deleted rather
than physically removed.

Usage:
    class Amendment(SoftDeleteMixin, db.Model):
        ...

    # Soft delete
    obj.soft_delete()
    db.session.commit()

    # Query only active records
    Amendment.query_active().all()

    # Include deleted
    Amendment.query.all()
"""

from datetime import datetime, timezone

from gulls_api.models import db


class SoftDeleteMixin:
    """Mixin that adds soft delete support to any SQLAlchemy model."""

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, default=None, index=True)

    def soft_delete(self):
        """Mark this record as deleted."""
        self.deleted_at = datetime.now(timezone.utc)

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def query_active(cls):
        """Return a query that excludes soft-deleted records."""
        return cls.query.filter(cls.deleted_at.is_(None))


class TimestampMixin:
    """created_at / updated_at columns shared by every licensing table."""

    created_at = db.Column(db.DateTime(timezone=True),
                           default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True),
                           default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))
