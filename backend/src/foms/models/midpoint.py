"""Midpoint SQLAlchemy model

Midpoints mark places along a cable route (slack loops, splice points).
They behave like vaults for photos and QA status but may lack coordinates
while a crew is still placing them.
"""

import enum

from sqlalchemy import Column, Float, Integer, Text, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship

from .base import Base
from .soft_delete import SoftDeleteMixin


class MidpointStatus(str, enum.Enum):
    """QA workflow state of a midpoint."""
    NEW = "New"            # Black marker
    REVIEW = "Review"      # Light gray marker
    COMPLETE = "Complete"  # Light green marker
    ISSUE = "Issue"        # Light red marker


class Midpoint(SoftDeleteMixin, Base):
    """Midpoint model (waypoint asset)."""
    __tablename__ = "midpoints"
    __table_args__ = (
        Index("ix_midpoints_is_deleted_deleted_at", "is_deleted", "deleted_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, default="")
    color = Column(Text, nullable=False, default="Black")
    status = Column(
        SQLEnum(MidpointStatus, name="midpointstatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MidpointStatus.NEW,
    )
    description = Column(Text, nullable=True)
    longitude = Column(Float, nullable=True)
    latitude = Column(Float, nullable=True)

    photos = relationship(
        "Photo",
        back_populates="midpoint",
        cascade="all, delete-orphan",
        order_by="Photo.id",
    )

    def __repr__(self) -> str:
        return f"<Midpoint id={self.id} name={self.name!r} deleted={self.is_deleted}>"
