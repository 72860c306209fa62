"""
User schemas shared by the other apps.
"""

from uuid import UUID

from ninja import Schema


class UserMinimalSchema(Schema):
    """Minimal user information for references."""

    id: UUID
    first_name: str
    last_name: str
    email: str

    @staticmethod
    def from_user(user) -> "UserMinimalSchema":
        """Create schema from User model."""
        return UserMinimalSchema(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
        )
