"""Account administration routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Path, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.logging_safety import safe_log_identifier
from app.domain.credentials import GeneratedPassword
from app.domain.results import ServiceResult
from app.routes.dependencies import get_account_service, require_admin_principal
from app.schemas.account import (
    CreateUserRequest,
    CreateUserResponse,
    DeleteUserResponse,
    ListUsersResponse,
    UpdatePasswordRequest,
    UpdatePasswordResponse,
)
from app.schemas.auth import Principal
from app.schemas.error import ErrorCode, ErrorResponse
from app.services.accounts import AccountService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_EMAIL: status.HTTP_400_BAD_REQUEST,
    ErrorCode.USER_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ADMIN_DELETE_FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.DELETE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_AUTH_RESPONSES: dict[int | str, dict] = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _json(status_code: int, payload: BaseModel) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def _failure(result: ServiceResult) -> JSONResponse:
    error = result.error or ErrorCode.INTERNAL_ERROR
    status_code = _STATUS_BY_ERROR.get(error, status.HTTP_400_BAD_REQUEST)
    return _json(status_code, ErrorResponse(error=error, message=result.message))


def _disclose(generated: GeneratedPassword | None) -> str | None:
    return generated.reveal() if generated is not None else None


@router.post(
    "",
    response_model=CreateUserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, **_AUTH_RESPONSES},
)
def create_user(
    payload: CreateUserRequest,
    principal: Annotated[Principal, Depends(require_admin_principal)],
    service: Annotated[AccountService, Depends(get_account_service)],
) -> JSONResponse:
    logger.info(
        "users.create_requested email=%s username=%s admin=%s",
        safe_log_identifier(payload.email, prefix="email"),
        payload.username,
        principal.email,
    )
    result = service.create_account(
        email=payload.email,
        name=payload.name,
        username=payload.username,
        password=payload.password,
    )
    if not result.success or result.data is None:
        return _failure(result)

    body = CreateUserResponse(
        message=result.message,
        user=result.data.user,
        generated_password=_disclose(result.data.generated_password),
    )
    return _json(status.HTTP_201_CREATED, body)


@router.get(
    "",
    response_model=ListUsersResponse,
    responses=_AUTH_RESPONSES,
)
def list_users(
    principal: Annotated[Principal, Depends(require_admin_principal)],
    service: Annotated[AccountService, Depends(get_account_service)],
    page: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
) -> JSONResponse:
    logger.info("users.list_requested page=%s limit=%s admin=%s", page, limit, principal.email)
    result = service.list_accounts(page=page, limit=limit)
    if not result.success or result.data is None:
        return _failure(result)

    body = ListUsersResponse(
        message=result.message,
        users=result.data.users,
        pagination=result.data.pagination,
    )
    return _json(status.HTTP_200_OK, body)


@router.put(
    "/{userId}/password",
    response_model=UpdatePasswordResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, **_AUTH_RESPONSES},
)
def update_user_password(
    user_id: Annotated[str, Path(alias="userId")],
    principal: Annotated[Principal, Depends(require_admin_principal)],
    service: Annotated[AccountService, Depends(get_account_service)],
    payload: Annotated[UpdatePasswordRequest | None, Body()] = None,
) -> JSONResponse:
    password = payload.password if payload is not None else None
    logger.info(
        "users.password_update_requested user_id=%s has_password=%s admin=%s",
        user_id,
        bool(password),
        principal.email,
    )
    result = service.update_password(user_id=user_id, password=password)
    if not result.success or result.data is None:
        return _failure(result)

    body = UpdatePasswordResponse(
        message=result.message,
        generated_password=_disclose(result.data.generated_password),
    )
    return _json(status.HTTP_200_OK, body)


@router.delete(
    "/{userId}",
    response_model=DeleteUserResponse,
    responses={404: {"model": ErrorResponse}, **_AUTH_RESPONSES},
)
def delete_user(
    user_id: Annotated[str, Path(alias="userId")],
    principal: Annotated[Principal, Depends(require_admin_principal)],
    service: Annotated[AccountService, Depends(get_account_service)],
) -> JSONResponse:
    logger.info("users.delete_requested user_id=%s admin=%s", user_id, principal.email)
    result = service.delete_account(user_id=user_id)
    if not result.success:
        return _failure(result)

    return _json(status.HTTP_200_OK, DeleteUserResponse(message=result.message))
