"""Authentication schemas."""

from enum import StrEnum

from pydantic import BaseModel, Field


class Role(StrEnum):
    USER = "USER"
    ADMIN = "ADMIN"


class TokenClaims(BaseModel):
    """Identity extracted from a verified session token."""

    user_id: str = Field(min_length=1)


class Principal(BaseModel):
    """Authenticated identity attached to an admin request."""

    id: str = Field(min_length=1)
    email: str
    role: Role
    display_name: str = ""
