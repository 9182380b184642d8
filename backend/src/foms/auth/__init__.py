"""Bearer token authentication and role checks."""

from .dependencies import Principal, get_current_principal, require_role
from .jwt import create_access_token, decode_token
from .roles import UserRole, has_permission

__all__ = [
    "Principal",
    "get_current_principal",
    "require_role",
    "create_access_token",
    "decode_token",
    "UserRole",
    "has_permission",
]
