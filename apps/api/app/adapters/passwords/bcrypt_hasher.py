"""bcrypt password hasher adapter."""

from __future__ import annotations

import bcrypt

from app.adapters.passwords.base import PasswordHasher

# bcrypt only consumes the first 72 bytes; newer releases reject longer input.
_BCRYPT_MAX_BYTES = 72


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES], salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES], hashed.encode("utf-8"))
        except ValueError:
            return False


__all__ = ["BcryptPasswordHasher"]
