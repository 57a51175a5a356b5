"""In-memory user store used by the API scaffold and tests."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from app.repositories.users import (
    LOCAL_PROVIDER,
    BalanceConfig,
    DeleteResult,
    DuplicateKeyError,
    StoreError,
    UserRecord,
    UserStore,
    normalize_email,
)
from app.schemas.auth import Role

_UNIQUE_KEYS = ("email", "username")
_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
_RECORD_FIELDS = frozenset(item.name for item in fields(UserRecord))


@dataclass(slots=True)
class InMemoryUserStore(UserStore):
    """Simple, deterministic persistence layer for scaffolding and tests."""

    users: dict[str, UserRecord] = field(default_factory=dict)
    balances: dict[str, int] = field(default_factory=dict)
    user_write_count: int = 0
    failure_message: str | None = None

    def find_user(self, filters: dict[str, Any]) -> UserRecord | None:
        self._maybe_fail()
        for record in self.users.values():
            if self._matches(record, filters):
                return replace(record)
        return None

    def find_users(
        self,
        filters: dict[str, Any],
        *,
        skip: int = 0,
        limit: int | None = None,
        sort_desc_by: str = "created_at",
    ) -> list[UserRecord]:
        self._maybe_fail()
        matches = [record for record in self.users.values() if self._matches(record, filters)]
        matches.sort(key=lambda record: getattr(record, sort_desc_by), reverse=True)
        end = None if limit is None else skip + limit
        return [replace(record) for record in matches[skip:end]]

    def create_user(
        self,
        data: dict[str, Any],
        balance_config: BalanceConfig,
    ) -> UserRecord:
        self._maybe_fail()
        data = {**data, "email": normalize_email(data["email"])}
        for key in _UNIQUE_KEYS:
            value = data.get(key)
            if any(getattr(record, key) == value for record in self.users.values()):
                raise DuplicateKeyError(key)

        now = datetime.now(UTC)
        record = UserRecord(
            id=str(uuid4()),
            email=data["email"],
            username=data["username"],
            name=data["name"],
            role=Role(data.get("role", Role.USER)),
            password_hash=data["password_hash"],
            email_verified=bool(data.get("email_verified", False)),
            provider=data.get("provider", LOCAL_PROVIDER),
            avatar=data.get("avatar"),
            created_at=data.get("created_at") or now,
        )

        self.users[record.id] = record
        if balance_config.enabled:
            self.balances[record.id] = balance_config.start_balance
        self.user_write_count += 1
        return replace(record)

    def update_user(self, user_id: str, patch: dict[str, Any]) -> UserRecord | None:
        self._maybe_fail()
        record = self.users.get(user_id)
        if record is None:
            return None

        rejected = (set(patch) - _RECORD_FIELDS) | (set(patch) & _IMMUTABLE_FIELDS)
        if rejected:
            raise StoreError(f"Unsupported update fields: {sorted(rejected)}")

        for key, value in patch.items():
            setattr(record, key, value)
        record.updated_at = datetime.now(UTC)
        self.user_write_count += 1
        return replace(record)

    def count_users(self, filters: dict[str, Any] | None = None) -> int:
        self._maybe_fail()
        return sum(1 for record in self.users.values() if self._matches(record, filters or {}))

    def delete_user_by_id(self, user_id: str) -> DeleteResult:
        self._maybe_fail()
        if self.users.pop(user_id, None) is None:
            return DeleteResult(deleted_count=0)

        self.balances.pop(user_id, None)
        self.user_write_count += 1
        return DeleteResult(deleted_count=1)

    def _maybe_fail(self) -> None:
        if self.failure_message:
            raise StoreError(self.failure_message)

    @staticmethod
    def _matches(record: UserRecord, filters: dict[str, Any]) -> bool:
        return all(getattr(record, key, None) == value for key, value in filters.items())
