"""Admin authentication: API key or session token, selected per request."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from secrets import compare_digest

from app.adapters.auth import AuthVerificationError, TokenVerifier
from app.core.logging_safety import redact_secret, safe_log_identifier
from app.repositories.users import UserStore
from app.schemas.auth import Principal, Role
from app.schemas.error import ErrorCode

logger = logging.getLogger(__name__)

API_KEY_HEADERS: tuple[str, ...] = ("X-API-Key", "X-Account-Admin-Key")

SERVICE_PRINCIPAL = Principal(
    id="admin-api-service",
    email="admin-api@system",
    role=Role.ADMIN,
    display_name="Admin API Service",
)


@dataclass(slots=True, frozen=True)
class AuthRequest:
    """Credentials and transport details the selector needs from an inbound request.

    ``api_keys`` holds the raw value of each ``API_KEY_HEADERS`` entry, in
    order, with ``None`` for an absent header.
    """

    api_keys: tuple[str | None, ...]
    bearer_token: str | None
    client_ip: str | None
    user_agent: str | None
    method: str
    path: str

    @property
    def endpoint(self) -> str:
        return f"{self.method.upper()} {self.path}"


@dataclass(slots=True, frozen=True)
class ApiKeyAuthenticated:
    principal: Principal
    method: str = "api_key"


@dataclass(slots=True, frozen=True)
class SessionAuthenticated:
    principal: Principal
    method: str = "session"


@dataclass(slots=True, frozen=True)
class AuthRejected:
    status_code: int
    error: ErrorCode
    message: str


AuthOutcome = ApiKeyAuthenticated | SessionAuthenticated | AuthRejected


class AdminAuthSelector:
    """Runs exactly one authentication strategy per request.

    A present API-key header always selects the API-key strategy, even when a
    bearer token is attached as well. Otherwise the bearer token is verified
    and the referenced account must hold the ADMIN role.
    """

    def __init__(self, api_key: str | None, verifier: TokenVerifier, store: UserStore) -> None:
        self._api_key = api_key
        self._verifier = verifier
        self._store = store

    def authenticate(self, request: AuthRequest) -> AuthOutcome:
        provided_key = self._provided_api_key(request.api_keys)
        if provided_key is not None:
            return self._authenticate_api_key(request, provided_key)
        return self._authenticate_session(request)

    @staticmethod
    def _provided_api_key(values: tuple[str | None, ...]) -> str | None:
        present: str | None = None
        for value in values:
            if value:
                return value
            if value is not None:
                present = value
        return present

    def _authenticate_api_key(self, request: AuthRequest, provided_key: str) -> AuthOutcome:
        if not self._api_key:
            logger.error(
                "auth.rejected strategy=api_key reason=api_key_not_configured ip=%s user_agent=%s endpoint=%s",
                request.client_ip,
                request.user_agent,
                request.endpoint,
            )
            return AuthRejected(500, ErrorCode.CONFIGURATION_ERROR, "API key not configured")

        if not provided_key.strip():
            logger.warning(
                "auth.rejected strategy=api_key reason=missing_api_key ip=%s user_agent=%s endpoint=%s",
                request.client_ip,
                request.user_agent,
                request.endpoint,
            )
            return AuthRejected(401, ErrorCode.MISSING_API_KEY, "API key required. Provide X-API-Key header")

        if not compare_digest(provided_key.encode("utf-8"), self._api_key.encode("utf-8")):
            logger.warning(
                "auth.rejected strategy=api_key reason=invalid_api_key provided_key=%s ip=%s user_agent=%s endpoint=%s",
                redact_secret(provided_key),
                request.client_ip,
                request.user_agent,
                request.endpoint,
            )
            return AuthRejected(401, ErrorCode.INVALID_API_KEY, "Invalid API key")

        logger.info(
            "auth.accepted strategy=api_key ip=%s user_agent=%s endpoint=%s",
            request.client_ip,
            request.user_agent,
            request.endpoint,
        )
        return ApiKeyAuthenticated(principal=SERVICE_PRINCIPAL)

    def _authenticate_session(self, request: AuthRequest) -> AuthOutcome:
        token = request.bearer_token
        if not token:
            return self._reject_session(request, "invalid_or_missing_bearer", 401, ErrorCode.UNAUTHORIZED, "Unauthorized")

        try:
            claims = self._verifier.verify_token(token)
        except AuthVerificationError:
            return self._reject_session(request, "token_verification_failed", 401, ErrorCode.UNAUTHORIZED, "Unauthorized")

        try:
            account = self._store.find_user({"id": claims.user_id})
        except Exception:
            logger.exception(
                "auth.rejected strategy=session reason=account_lookup_failed ip=%s user_agent=%s endpoint=%s",
                request.client_ip,
                request.user_agent,
                request.endpoint,
            )
            return AuthRejected(500, ErrorCode.INTERNAL_ERROR, "Authentication error")

        if account is None:
            return self._reject_session(request, "account_not_found", 401, ErrorCode.UNAUTHORIZED, "Unauthorized")

        if account.role != Role.ADMIN:
            return self._reject_session(request, "insufficient_role", 403, ErrorCode.FORBIDDEN, "Forbidden")

        logger.info(
            "auth.accepted strategy=session principal_id=%s ip=%s user_agent=%s endpoint=%s",
            safe_log_identifier(account.id, prefix="pid"),
            request.client_ip,
            request.user_agent,
            request.endpoint,
        )
        return SessionAuthenticated(
            principal=Principal(
                id=account.id,
                email=account.email,
                role=account.role,
                display_name=account.name,
            )
        )

    @staticmethod
    def _reject_session(
        request: AuthRequest,
        reason: str,
        status_code: int,
        error: ErrorCode,
        message: str,
    ) -> AuthRejected:
        logger.warning(
            "auth.rejected strategy=session reason=%s ip=%s user_agent=%s endpoint=%s",
            reason,
            request.client_ip,
            request.user_agent,
            request.endpoint,
        )
        return AuthRejected(status_code, error, message)


__all__ = [
    "API_KEY_HEADERS",
    "SERVICE_PRINCIPAL",
    "AdminAuthSelector",
    "ApiKeyAuthenticated",
    "AuthOutcome",
    "AuthRejected",
    "AuthRequest",
    "SessionAuthenticated",
]
