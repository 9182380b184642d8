"""Soft-delete columns shared by vaults, midpoints and cables.

A soft-deleted row stays in the table with is_deleted=True and the instant of
deletion in deleted_at, so it can be restored until the purge job removes it
for good. deleted_at is set if and only if is_deleted is True.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, and_, text

from .base import utc_now


class SoftDeleteMixin:
    """Mixin adding the is_deleted / deleted_at pair.

    The CRUD layer flips the flag through mark_deleted() and restore(); the
    purge engine only reads it (see expired_predicate).
    """

    is_deleted = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def mark_deleted(self, now: Optional[datetime] = None) -> None:
        """Flag the row as deleted.

        The timestamp is recorded on the false -> true transition only;
        deleting an already deleted row keeps the original instant so the
        retention window is not extended.
        """
        if self.is_deleted and self.deleted_at is not None:
            return
        self.is_deleted = True
        self.deleted_at = now or utc_now()

    def restore(self) -> None:
        """Undo a soft delete (clears both flag and timestamp)."""
        self.is_deleted = False
        self.deleted_at = None

    @classmethod
    def expired_predicate(cls, cutoff: datetime):
        """SQL filter for rows soft-deleted strictly before cutoff."""
        return and_(
            cls.is_deleted.is_(True),
            cls.deleted_at.isnot(None),
            cls.deleted_at < cutoff,
        )
