"""Photo SQLAlchemy model

Only metadata lives in the database. The image bytes are kept by the
configured storage provider under file_name, a generated unique name.
A photo belongs to exactly one vault or exactly one midpoint; the upload
endpoint enforces that, the purge engine relies on it.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import relationship

from .base import Base, utc_now


class Photo(Base):
    """Construction photo attached to a vault or a midpoint."""
    __tablename__ = "photos"
    __table_args__ = (
        Index("ix_photos_vault_id", "vault_id"),
        Index("ix_photos_midpoint_id", "midpoint_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_name = Column(Text, nullable=False, default="")
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    vault_id = Column(Integer, ForeignKey("vaults.id", ondelete="CASCADE"), nullable=True)
    midpoint_id = Column(Integer, ForeignKey("midpoints.id", ondelete="CASCADE"), nullable=True)

    vault = relationship("Vault", back_populates="photos")
    midpoint = relationship("Midpoint", back_populates="photos")

    def owner_ref(self) -> dict:
        """Owner ids for log context."""
        return {"vault_id": self.vault_id, "midpoint_id": self.midpoint_id}

    def __repr__(self) -> str:
        return f"<Photo id={self.id} file_name={self.file_name!r}>"
