"""Mock auth verifier for local development and tests."""

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.schemas.auth import TokenClaims


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens only.

    Expected token format: ``test:<user_id>``. The role is never taken from
    the token; it is read from the stored account.
    """

    def verify_token(self, token: str) -> TokenClaims:
        prefix, separator, user_id = token.partition(":")
        if prefix != "test" or not separator:
            raise AuthVerificationError("Invalid bearer token")

        user_id = user_id.strip()
        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")

        return TokenClaims(user_id=user_id)


__all__ = ["MockTokenVerifier"]
