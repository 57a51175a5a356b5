"""Registration policy collaborators: email domain allowlist and balance config."""

from __future__ import annotations

from collections.abc import Iterable

from app.core.config import Settings
from app.repositories.users import BalanceConfig


class DomainPolicy:
    """Decides which email domains may register.

    An empty allowlist allows every domain.
    """

    def __init__(self, allowed_domains: Iterable[str] = ()) -> None:
        self._allowed = frozenset(domain.strip().lower() for domain in allowed_domains if domain.strip())

    def is_email_domain_allowed(self, email: str) -> bool:
        if not self._allowed:
            return True

        _, separator, domain = email.rpartition("@")
        if not separator or not domain:
            return False
        return domain.lower() in self._allowed


def get_balance_config(settings: Settings) -> BalanceConfig:
    return BalanceConfig(enabled=settings.balance_enabled, start_balance=settings.start_balance)


__all__ = ["DomainPolicy", "get_balance_config"]
