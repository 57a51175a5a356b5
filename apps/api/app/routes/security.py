"""Credential extraction schemes for admin routes."""

from fastapi import Request
from fastapi.security import APIKeyHeader, HTTPBearer

from app.services.admin_auth import API_KEY_HEADERS


class PresentAPIKeyHeader(APIKeyHeader):
    """Header scheme that reports a present but empty key as ``""`` rather than ``None``."""

    # No postponed annotations in this module: FastAPI resolves this signature
    # from the scheme instance, which carries no module globals.
    async def __call__(self, request: Request) -> str | None:
        return request.headers.get(self.model.name)


bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
api_key_scheme = PresentAPIKeyHeader(name=API_KEY_HEADERS[0], auto_error=False, scheme_name="apiKey")
alternate_api_key_scheme = PresentAPIKeyHeader(
    name=API_KEY_HEADERS[1],
    auto_error=False,
    scheme_name="accountAdminKey",
)
