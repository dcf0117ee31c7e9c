"""User roles and permission hierarchy for Ordira.

Role Hierarchy (descending permissions):
- PLATFORM_ADMIN: Operates the platform itself (tenant cache, all tenants)
- ADMIN: Manages their business's brand settings and custom domains
- EDITOR: Edits brand content
- VIEWER: Read-only access to their business's settings

Permission Matrix:
┌──────────────────────────┬────────────────┬───────┬────────┬────────┐
│ Action                   │ PLATFORM_ADMIN │ ADMIN │ EDITOR │ VIEWER │
├──────────────────────────┼────────────────┼───────┼────────┼────────┤
│ Manage tenant cache      │       ✓        │       │        │        │
│ Change domains/subdomain │       ✓        │   ✓   │        │        │
│ Verify custom domains    │       ✓        │   ✓   │        │        │
│ View brand settings      │       ✓        │   ✓   │   ✓    │   ✓    │
└──────────────────────────┴────────────────┴───────┴────────┴────────┘
"""

from enum import Enum
from typing import Set


class UserRole(str, Enum):
    """User roles in Ordira.

    Values are stored as TEXT in the database and must match exactly.
    """
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.PLATFORM_ADMIN: {UserRole.PLATFORM_ADMIN, UserRole.ADMIN, UserRole.EDITOR, UserRole.VIEWER},
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.EDITOR, UserRole.VIEWER},
    UserRole.EDITOR: {UserRole.EDITOR, UserRole.VIEWER},
    UserRole.VIEWER: {UserRole.VIEWER},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a user role satisfies a required role.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.EDITOR)
        True
        >>> has_permission(UserRole.VIEWER, UserRole.ADMIN)
        False
        >>> has_permission(UserRole.ADMIN, UserRole.PLATFORM_ADMIN)
        False
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())


def get_allowed_roles(required_role: UserRole) -> Set[UserRole]:
    """Get all roles that have permission to perform an action.

    Example:
        >>> get_allowed_roles(UserRole.ADMIN)
        {UserRole.PLATFORM_ADMIN, UserRole.ADMIN}
    """
    return {role for role, permissions in ROLE_HIERARCHY.items() if required_role in permissions}
