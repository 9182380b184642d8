"""Cable SQLAlchemy model

A cable is a fiber route drawn as a polyline between vaults. The path is an
ordered list of [longitude, latitude] pairs. Cables have no photos.
"""

from sqlalchemy import Column, Integer, Text, Index

from .base import Base, PortableJSONB
from .soft_delete import SoftDeleteMixin


class Cable(SoftDeleteMixin, Base):
    """Cable model (line asset)."""
    __tablename__ = "cables"
    __table_args__ = (
        Index("ix_cables_is_deleted_deleted_at", "is_deleted", "deleted_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, default="")
    color = Column(Text, nullable=False, default="Black")
    description = Column(Text, nullable=True)
    path = Column(PortableJSONB, nullable=True)  # [[lon, lat], ...]

    def __repr__(self) -> str:
        return f"<Cable id={self.id} name={self.name!r} deleted={self.is_deleted}>"
