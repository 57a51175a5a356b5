"""User-record storage contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.schemas.auth import Role

LOCAL_PROVIDER = "local"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class StoreError(Exception):
    """Raised when the backing store cannot complete an operation."""


class DuplicateKeyError(StoreError):
    """Raised when a write violates a unique key (email or username)."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Duplicate value for unique key '{key}'")


@dataclass(slots=True)
class UserRecord:
    id: str
    email: str
    username: str
    name: str
    role: Role
    password_hash: str
    email_verified: bool
    provider: str
    created_at: datetime
    avatar: str | None = None
    updated_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class BalanceConfig:
    enabled: bool = False
    start_balance: int = 0


@dataclass(slots=True, frozen=True)
class DeleteResult:
    deleted_count: int


class UserStore(ABC):
    """Persistence primitives the account service relies on."""

    @abstractmethod
    def find_user(self, filters: dict[str, Any]) -> UserRecord | None:
        """Return the first record whose fields equal every filter value."""

    @abstractmethod
    def find_users(
        self,
        filters: dict[str, Any],
        *,
        skip: int = 0,
        limit: int | None = None,
        sort_desc_by: str = "created_at",
    ) -> list[UserRecord]:
        """Return a page of matching records sorted descending by ``sort_desc_by``."""

    @abstractmethod
    def create_user(
        self,
        data: dict[str, Any],
        balance_config: BalanceConfig,
    ) -> UserRecord:
        """Persist a new record atomically, raising ``DuplicateKeyError`` on unique-key collisions.

        Emails are stored and compared in their ``normalize_email`` form.
        """

    @abstractmethod
    def update_user(self, user_id: str, patch: dict[str, Any]) -> UserRecord | None:
        """Apply ``patch`` to the record; untouched fields keep their values."""

    @abstractmethod
    def count_users(self, filters: dict[str, Any] | None = None) -> int:
        """Count matching records."""

    @abstractmethod
    def delete_user_by_id(self, user_id: str) -> DeleteResult:
        """Delete a record and report how many were removed."""


__all__ = [
    "LOCAL_PROVIDER",
    "BalanceConfig",
    "DeleteResult",
    "DuplicateKeyError",
    "StoreError",
    "UserRecord",
    "UserStore",
    "normalize_email",
]
