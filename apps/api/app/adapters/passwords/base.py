"""Password hashing interface."""

from abc import ABC, abstractmethod


class PasswordHasher(ABC):
    """Salted one-way hash over plaintext passwords."""

    @abstractmethod
    def hash(self, plaintext: str) -> str:
        """Return a salted hash suitable for storage."""

    @abstractmethod
    def verify(self, plaintext: str, hashed: str) -> bool:
        """Return whether ``plaintext`` matches ``hashed``."""


__all__ = ["PasswordHasher"]
