"""FastAPI dependencies for authentication and authorization.

Usage:
    @router.post("/purge-deleted")
    async def purge(principal: Principal = Depends(require_role(UserRole.ADMIN))):
        ...
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Set

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .jwt import decode_token
from .roles import UserRole, has_permission, parse_roles

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401, not FastAPI's default 403
security = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """Authenticated caller, built from token claims only (no database lookup)."""
    subject: str
    name: Optional[str] = None
    roles: Set[UserRole] = field(default_factory=set)

    def has_role(self, required_role: UserRole) -> bool:
        return any(has_permission(role, required_role) for role in self.roles)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Validate the bearer token and return the caller.

    Raises:
        HTTPException 401: If token is missing, invalid, expired or has no subject
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(str(e))
    except ValueError as e:
        logger.error(f"Token validation misconfigured: {e}")
        raise _unauthorized("Token validation unavailable")

    subject = payload.get("sub")
    if not subject:
        raise _unauthorized("Invalid token: missing subject claim")

    raw_roles = payload.get("roles")
    if raw_roles is None:
        raw_roles = [payload["role"]] if payload.get("role") else []
    elif isinstance(raw_roles, str):
        raw_roles = [raw_roles]

    return Principal(subject=str(subject), name=payload.get("name"), roles=parse_roles(raw_roles))


def require_role(required_role: UserRole) -> Callable:
    """Create a dependency that enforces role-based access control.

    Raises:
        HTTPException 403: If none of the caller's roles satisfies required_role
    """

    def role_dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_role(required_role):
            logger.warning(
                f"Access denied: {required_role.value} role required",
                extra={"subject": principal.subject, "roles": sorted(r.value for r in principal.roles)},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{required_role.value} role required",
            )
        return principal

    return role_dependency
