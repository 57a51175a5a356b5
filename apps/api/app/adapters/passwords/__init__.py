"""Password hashing adapters."""

from .base import PasswordHasher
from .bcrypt_hasher import BcryptPasswordHasher

__all__ = ["BcryptPasswordHasher", "PasswordHasher"]
