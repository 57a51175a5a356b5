"""Account API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.auth import Role


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateUserRequest(BaseModel):
    # Presence is checked by the account service so missing fields map to INVALID_INPUT.
    email: str | None = None
    name: str | None = None
    username: str | None = None
    password: str | None = None


class UpdatePasswordRequest(BaseModel):
    password: str | None = None


class AccountSummary(_CamelModel):
    id: str
    email: str
    name: str
    username: str


class AccountListItem(_CamelModel):
    id: str
    email: str
    name: str
    username: str
    role: Role
    created_at: datetime


class Pagination(_CamelModel):
    current_page: int
    total_pages: int
    total_users: int
    has_next: bool
    has_prev: bool


class CreateUserResponse(_CamelModel):
    success: bool = True
    message: str
    user: AccountSummary
    generated_password: str | None = None


class ListUsersResponse(_CamelModel):
    success: bool = True
    message: str
    users: list[AccountListItem]
    pagination: Pagination


class UpdatePasswordResponse(_CamelModel):
    success: bool = True
    message: str
    generated_password: str | None = None


class DeleteUserResponse(_CamelModel):
    success: bool = True
    message: str
