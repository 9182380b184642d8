"""Vault SQLAlchemy model

A vault is an underground access point of the fiber network, shown as a
point marker on the map. Vaults own construction photos.
"""

import enum

from sqlalchemy import Column, Float, Integer, Text, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship

from .base import Base
from .soft_delete import SoftDeleteMixin


class VaultStatus(str, enum.Enum):
    """QA workflow state of a vault; drives the marker color.

    State flow: PENDING -> REVIEW -> COMPLETE, or REVIEW -> REJECTED -> REVIEW
    """
    PENDING = "Pending"    # Gray: no work done yet
    REVIEW = "Review"      # Yellow: crew uploaded photos
    COMPLETE = "Complete"  # Green: coordinator approved
    REJECTED = "Rejected"  # Red: photos must be redone


class Vault(SoftDeleteMixin, Base):
    """Vault model (point asset)."""
    __tablename__ = "vaults"
    __table_args__ = (
        Index("ix_vaults_is_deleted_deleted_at", "is_deleted", "deleted_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, default="")
    color = Column(Text, nullable=False, default="Blue")
    status = Column(
        SQLEnum(VaultStatus, name="vaultstatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VaultStatus.PENDING,
    )
    description = Column(Text, nullable=True)
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)

    photos = relationship(
        "Photo",
        back_populates="vault",
        cascade="all, delete-orphan",
        order_by="Photo.id",
    )

    def __repr__(self) -> str:
        return f"<Vault id={self.id} name={self.name!r} deleted={self.is_deleted}>"
