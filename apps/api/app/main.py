"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.errors import ApiError
from app.repositories.memory import InMemoryUserStore
from app.routes import users_router
from app.schemas.error import ErrorCode, ErrorResponse

logger = logging.getLogger(__name__)

_OPENAPI_RESPONSE_CODES: dict[str, dict[str, set[str]]] = {
    "/api/v1/users": {
        "post": {"201", "400", "401", "403", "409", "500"},
        "get": {"200", "401", "403", "500"},
    },
    "/api/v1/users/{userId}/password": {"put": {"200", "400", "401", "403", "404", "500"}},
    "/api/v1/users/{userId}": {"delete": {"200", "401", "403", "404", "500"}},
}

_ERROR_SCHEMA_REF = "#/components/schemas/ErrorResponse"


def _apply_contract_response_codes(schema: dict) -> None:
    """Limit documented response codes to the admin API contract and point failures at the error envelope."""
    for path, methods in _OPENAPI_RESPONSE_CODES.items():
        path_item = schema.get("paths", {}).get(path)
        if not path_item:
            continue

        for method, allowed_codes in methods.items():
            operation = path_item.get(method)
            if not operation:
                continue

            responses = operation.setdefault("responses", {})
            for status_code in list(responses.keys()):
                if status_code not in allowed_codes:
                    responses.pop(status_code, None)

            for status_code in sorted(allowed_codes):
                response = responses.setdefault(status_code, {"description": "See API contract"})
                if status_code.startswith(("4", "5")):
                    content = response.setdefault("content", {}).setdefault("application/json", {})
                    content["schema"] = {"$ref": _ERROR_SCHEMA_REF}


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Account Admin API", version="1.0.0")
    app.state.store = InMemoryUserStore()

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(
            "request.invalid method=%s path=%s error_count=%s",
            request.method,
            request.url.path,
            len(exc.errors()),
        )
        payload = ErrorResponse(error=ErrorCode.INVALID_INPUT, message="Invalid request payload")
        return JSONResponse(status_code=400, content=payload.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request.failed method=%s path=%s", request.method, request.url.path, exc_info=exc)
        payload = ErrorResponse(error=ErrorCode.INTERNAL_ERROR, message="Something went wrong")
        return JSONResponse(status_code=500, content=payload.model_dump(mode="json"))

    api_prefix = "/api/v1"
    app.include_router(users_router, prefix=api_prefix)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_contract_response_codes(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


app = create_app()
