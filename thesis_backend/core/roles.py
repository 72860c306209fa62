"""
Role definitions for the thesis backend.

Defines the roles used across the platform:
- Étudiant: Students who create pre-projects and invite co-students
- Encadrant: Advisors who accept or reject solicitations
- Discutant: Reviewers attached to a pre-project for the defense
- Admin: Administrators who grade, lock and promote pre-projects
"""

from enum import Enum


class Role(str, Enum):
    """
    Enum of available roles.

    Values match Django Group names exactly.
    """

    ETUDIANT = "Étudiant"
    ENCADRANT = "Encadrant"
    DISCUTANT = "Discutant"
    ADMIN = "Admin"

    @classmethod
    def choices(cls) -> list[tuple[str, str]]:
        """Return choices for Django form fields."""
        return [(role.value, role.value) for role in cls]

    @classmethod
    def values(cls) -> list[str]:
        """Return all role values."""
        return [role.value for role in cls]


def get_user_roles(user) -> list[str]:
    """
    Get the list of role names for a user.

    Args:
        user: Django User instance

    Returns:
        List of role names the user belongs to
    """
    if not user or not user.is_authenticated:
        return []

    return list(user.groups.values_list("name", flat=True))


def user_has_role(user, role: Role | str) -> bool:
    """
    Check if a user has a specific role.

    Args:
        user: Django User instance
        role: Role enum value or role name string

    Returns:
        True if user has the role
    """
    if not user or not user.is_authenticated:
        return False

    role_name = role.value if isinstance(role, Role) else role
    return user.groups.filter(name=role_name).exists()


def is_admin(user) -> bool:
    """
    Check if user has admin privileges.

    Returns True for superusers or users with Admin role.
    """
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return user_has_role(user, Role.ADMIN)
