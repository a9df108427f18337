"""Role-based access control (RBAC) for LearnHub.

Hierarchical permission system:
- SUPER_ADMIN (level 4): Platform owner
- ADMIN (level 3): Full system access
- INSTRUCTOR (level 2): Manage own courses, reply to reviews and tickets
- STUDENT (level 1): Enroll, learn, review
- AFFILIATE (level 0): Registered partner without learning access
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    AFFILIATE = "affiliate"
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.AFFILIATE: 0,
    UserRole.STUDENT: 1,
    UserRole.INSTRUCTOR: 2,
    UserRole.ADMIN: 3,
    UserRole.SUPER_ADMIN: 4,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role.

    Unknown roles get level 0.
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.INSTRUCTOR)
        True
        >>> has_permission("student", "instructor")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_staff(role: UserRole | str) -> bool:
    """Check if role is INSTRUCTOR or higher."""
    return has_permission(role, UserRole.INSTRUCTOR)


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN or SUPER_ADMIN."""
    return has_permission(role, UserRole.ADMIN)
