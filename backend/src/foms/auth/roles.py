"""User roles and permission hierarchy for FOMS.

Role Hierarchy (descending permissions):
- Admin: maintenance operations such as purging deleted assets
- Editor: create, edit and soft-delete assets and photos
- Viewer: read-only access

Role names match the app roles issued by the identity provider, so they are
compared case-sensitively.
"""

from enum import Enum
from typing import Iterable, Set


class UserRole(str, Enum):
    """App roles carried in the token's roles claim."""
    ADMIN = "Admin"
    EDITOR = "Editor"
    VIEWER = "Viewer"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.EDITOR, UserRole.VIEWER},
    UserRole.EDITOR: {UserRole.EDITOR, UserRole.VIEWER},
    UserRole.VIEWER: {UserRole.VIEWER},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a role satisfies a required role.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.EDITOR)
        True
        >>> has_permission(UserRole.VIEWER, UserRole.ADMIN)
        False
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())


def parse_roles(values: Iterable[str]) -> Set[UserRole]:
    """Map claim values to known roles, ignoring unknown ones."""
    known = {role.value: role for role in UserRole}
    return {known[value] for value in values if value in known}
