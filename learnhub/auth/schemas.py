"""Authenticated caller representation."""

from uuid import UUID

from pydantic import BaseModel, Field

from .permissions import UserRole, is_admin, is_staff


class Principal(BaseModel):
    """Caller identity extracted from a verified access token."""

    id: UUID = Field(..., description="User UUID (token subject)")
    role: UserRole = Field(..., description="User role")
    email: str | None = Field(default=None, description="User email")

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)
