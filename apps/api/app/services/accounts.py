"""Account lifecycle service for out-of-band administration."""

from __future__ import annotations

from collections.abc import Callable
import logging
import math
import re
from typing import Any

from app.adapters.passwords import PasswordHasher
from app.core.logging_safety import safe_log_identifier
from app.domain.credentials import GeneratedPassword, generate_password
from app.domain.results import AccountCreated, AccountPage, PasswordUpdated, ServiceResult
from app.repositories.users import (
    LOCAL_PROVIDER,
    BalanceConfig,
    DuplicateKeyError,
    UserRecord,
    UserStore,
    normalize_email,
)
from app.schemas.account import AccountListItem, AccountSummary, Pagination
from app.schemas.auth import Role
from app.schemas.error import ErrorCode
from app.services.policy import DomainPolicy

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PAGE_DEFAULT = 1
_LIMIT_DEFAULT = 20
_LIMIT_MIN = 1
_LIMIT_MAX = 100
_INTERNAL_ERROR_MESSAGE = "Something went wrong"


def _parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _is_filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class AccountService:
    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        domain_policy: DomainPolicy,
        balance_config: BalanceConfig,
        password_generator: Callable[[], str] = generate_password,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._domain_policy = domain_policy
        self._balance_config = balance_config
        self._password_generator = password_generator

    def create_account(
        self,
        *,
        email: str | None,
        name: str | None,
        username: str | None,
        password: str | None = None,
    ) -> ServiceResult[AccountCreated]:
        if not (_is_filled(email) and _is_filled(name) and _is_filled(username)):
            return ServiceResult.fail(ErrorCode.INVALID_INPUT, "Email, name, and username are required")

        email = normalize_email(email)
        if not _EMAIL_PATTERN.fullmatch(email):
            return ServiceResult.fail(ErrorCode.INVALID_EMAIL, "Invalid email format")

        try:
            if self._store.find_user({"email": email}) is not None:
                return ServiceResult.fail(ErrorCode.USER_EXISTS, "User already exists")

            if self._store.find_user({"username": username}) is not None:
                return ServiceResult.fail(ErrorCode.USER_EXISTS, "Username already exists")

            # Uniqueness errors take priority over the domain policy.
            if not self._domain_policy.is_email_domain_allowed(email):
                return ServiceResult.fail(ErrorCode.INVALID_EMAIL, "Email domain not allowed")

            effective_password, generated = self._resolve_password(password)
            record = self._store.create_user(
                {
                    "provider": LOCAL_PROVIDER,
                    "email": email,
                    "username": username,
                    "name": name,
                    "avatar": None,
                    "role": Role.USER,
                    "password_hash": self._hasher.hash(effective_password),
                    "email_verified": True,
                },
                self._balance_config,
            )
        except DuplicateKeyError as exc:
            # Lost a race against a concurrent create; the store's unique key is authoritative.
            logger.info("accounts.create_conflict key=%s", exc.key)
            return ServiceResult.fail(ErrorCode.USER_EXISTS, "User already exists")
        except Exception:
            logger.exception(
                "accounts.create_failed email=%s",
                safe_log_identifier(email, prefix="email"),
            )
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, _INTERNAL_ERROR_MESSAGE)

        logger.info(
            "accounts.created user_id=%s email=%s generated_password=%s",
            record.id,
            safe_log_identifier(record.email, prefix="email"),
            generated is not None,
        )
        return ServiceResult.ok(
            "User created successfully",
            AccountCreated(user=self._to_summary(record), generated_password=generated),
        )

    def list_accounts(self, *, page: Any = None, limit: Any = None) -> ServiceResult[AccountPage]:
        current_page = max(_PAGE_DEFAULT, _parse_int(page) or _PAGE_DEFAULT)
        page_size = min(_LIMIT_MAX, max(_LIMIT_MIN, _parse_int(limit) or _LIMIT_DEFAULT))
        skip = (current_page - 1) * page_size

        try:
            total_users = self._store.count_users()
            records = self._store.find_users({}, skip=skip, limit=page_size, sort_desc_by="created_at")
        except Exception:
            logger.exception("accounts.list_failed page=%s limit=%s", current_page, page_size)
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, _INTERNAL_ERROR_MESSAGE)

        total_pages = math.ceil(total_users / page_size)
        logger.info(
            "accounts.listed page=%s limit=%s total_users=%s returned=%s",
            current_page,
            page_size,
            total_users,
            len(records),
        )
        return ServiceResult.ok(
            "Users retrieved successfully",
            AccountPage(
                users=[self._to_list_item(record) for record in records],
                pagination=Pagination(
                    current_page=current_page,
                    total_pages=total_pages,
                    total_users=total_users,
                    has_next=current_page < total_pages,
                    has_prev=current_page > 1,
                ),
            ),
        )

    def update_password(self, *, user_id: str, password: str | None = None) -> ServiceResult[PasswordUpdated]:
        try:
            record = self._store.find_user({"id": user_id})
            if record is None:
                return ServiceResult.fail(ErrorCode.USER_NOT_FOUND, "User not found")

            effective_password, generated = self._resolve_password(password)
            updated = self._store.update_user(user_id, {"password_hash": self._hasher.hash(effective_password)})
            if updated is None:
                return ServiceResult.fail(ErrorCode.USER_NOT_FOUND, "User not found")
        except Exception:
            logger.exception("accounts.password_update_failed user_id=%s", user_id)
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, _INTERNAL_ERROR_MESSAGE)

        logger.info(
            "accounts.password_updated user_id=%s generated_password=%s",
            user_id,
            generated is not None,
        )
        return ServiceResult.ok("Password updated successfully", PasswordUpdated(generated_password=generated))

    def delete_account(self, *, user_id: str) -> ServiceResult[None]:
        try:
            record = self._store.find_user({"id": user_id})
            if record is None:
                return ServiceResult.fail(ErrorCode.USER_NOT_FOUND, "User not found")

            if record.role == Role.ADMIN:
                logger.warning("accounts.delete_refused user_id=%s reason=admin_account", user_id)
                return ServiceResult.fail(ErrorCode.ADMIN_DELETE_FORBIDDEN, "Cannot delete admin user")

            result = self._store.delete_user_by_id(user_id)
        except Exception:
            logger.exception("accounts.delete_failed user_id=%s", user_id)
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, _INTERNAL_ERROR_MESSAGE)

        if result.deleted_count <= 0:
            logger.warning("accounts.delete_not_applied user_id=%s", user_id)
            return ServiceResult.fail(ErrorCode.DELETE_FAILED, "Failed to delete user")

        logger.info("accounts.deleted user_id=%s", user_id)
        return ServiceResult.ok("User deleted successfully")

    def _resolve_password(self, password: str | None) -> tuple[str, GeneratedPassword | None]:
        """Return the effective plaintext and, when generated, its one-time disclosure handle."""
        if password:
            return password, None

        plaintext = self._password_generator()
        return plaintext, GeneratedPassword(plaintext)

    @staticmethod
    def _to_summary(record: UserRecord) -> AccountSummary:
        return AccountSummary(id=record.id, email=record.email, name=record.name, username=record.username)

    @staticmethod
    def _to_list_item(record: UserRecord) -> AccountListItem:
        return AccountListItem(
            id=record.id,
            email=record.email,
            name=record.name,
            username=record.username,
            role=record.role,
            created_at=record.created_at,
        )
