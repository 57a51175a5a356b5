"""Dependency wiring for routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials

from app.adapters.auth import FirebaseTokenVerifier, MockTokenVerifier, TokenVerifier
from app.adapters.passwords import BcryptPasswordHasher, PasswordHasher
from app.core.config import Settings, get_settings
from app.errors import ApiError
from app.repositories.users import UserStore
from app.routes.security import alternate_api_key_scheme, api_key_scheme, bearer_scheme
from app.schemas.auth import Principal
from app.services.accounts import AccountService
from app.services.admin_auth import AdminAuthSelector, AuthRejected, AuthRequest
from app.services.policy import DomainPolicy, get_balance_config


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "firebase":
        return FirebaseTokenVerifier(
            project_id=settings.firebase_project_id,
            audience=settings.firebase_audience,
        )
    return MockTokenVerifier()


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_password_hasher(settings: Annotated[Settings, Depends(get_settings)]) -> PasswordHasher:
    return BcryptPasswordHasher(rounds=settings.bcrypt_rounds)


def get_auth_selector(
    settings: Annotated[Settings, Depends(get_settings)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
    store: Annotated[UserStore, Depends(get_store)],
) -> AdminAuthSelector:
    return AdminAuthSelector(api_key=settings.api_key, verifier=verifier, store=store)


def _auth_request(
    request: Request,
    api_keys: tuple[str | None, ...],
    credentials: HTTPAuthorizationCredentials | None,
) -> AuthRequest:
    return AuthRequest(
        api_keys=api_keys,
        bearer_token=credentials.credentials if credentials is not None else None,
        client_ip=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
        method=request.method,
        path=request.url.path,
    )


async def require_admin_principal(
    request: Request,
    api_key: Annotated[str | None, Security(api_key_scheme)],
    alternate_api_key: Annotated[str | None, Security(alternate_api_key_scheme)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    selector: Annotated[AdminAuthSelector, Depends(get_auth_selector)],
) -> Principal:
    """Authenticate the caller as an administrator and attach the principal to request context."""
    outcome = selector.authenticate(_auth_request(request, (api_key, alternate_api_key), credentials))
    if isinstance(outcome, AuthRejected):
        raise ApiError(status_code=outcome.status_code, error=outcome.error, message=outcome.message)

    request.state.auth_principal = outcome.principal
    request.state.auth_method = outcome.method
    return outcome.principal


def get_account_service(
    store: Annotated[UserStore, Depends(get_store)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AccountService:
    return AccountService(
        store=store,
        hasher=hasher,
        domain_policy=DomainPolicy(settings.allowed_email_domains),
        balance_config=get_balance_config(settings),
    )
