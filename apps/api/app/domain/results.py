"""Uniform result envelope returned by account service operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from app.domain.credentials import GeneratedPassword
from app.schemas.account import AccountListItem, AccountSummary, Pagination
from app.schemas.error import ErrorCode

T = TypeVar("T")


@dataclass(slots=True)
class ServiceResult(Generic[T]):
    success: bool
    message: str
    error: ErrorCode | None = None
    data: T | None = None

    @classmethod
    def ok(cls, message: str, data: T | None = None) -> ServiceResult[T]:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ErrorCode, message: str) -> ServiceResult[T]:
        return cls(success=False, message=message, error=error)


@dataclass(slots=True)
class AccountCreated:
    user: AccountSummary
    generated_password: GeneratedPassword | None = None


@dataclass(slots=True)
class AccountPage:
    users: list[AccountListItem] = field(default_factory=list)
    pagination: Pagination | None = None


@dataclass(slots=True)
class PasswordUpdated:
    generated_password: GeneratedPassword | None = None
