"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from app.schemas.auth import TokenClaims


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""


class TokenVerifier(ABC):
    """Provider-neutral session token verification interface."""

    @abstractmethod
    def verify_token(self, token: str) -> TokenClaims:
        """Verify token and return the account identity it was issued for."""


__all__ = ["AuthVerificationError", "TokenVerifier"]
