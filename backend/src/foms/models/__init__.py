"""SQLAlchemy Models for FOMS"""

from .base import Base, PortableJSONB, utc_now
from .soft_delete import SoftDeleteMixin
from .vault import Vault, VaultStatus
from .midpoint import Midpoint, MidpointStatus
from .cable import Cable
from .photo import Photo

__all__ = [
    "Base",
    "PortableJSONB",
    "utc_now",
    "SoftDeleteMixin",
    "Vault",
    "VaultStatus",
    "Midpoint",
    "MidpointStatus",
    "Cable",
    "Photo",
]
