"""Credential generation and one-time disclosure helpers."""

from __future__ import annotations

import secrets
import string

PASSWORD_ALPHABET = string.ascii_lowercase + string.digits
PASSWORD_LENGTH = 10


def generate_password() -> str:
    """Return a random password drawn from lowercase letters and digits."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(PASSWORD_LENGTH))


class PasswordAlreadyRevealedError(RuntimeError):
    """Raised when a generated password is read a second time."""


class GeneratedPassword:
    """Plaintext password that can be disclosed exactly once.

    The value is dropped on the first ``reveal()`` and never shows up in
    ``repr``/``str`` output, so it cannot leak through logging or tracebacks.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value: str | None = value

    @property
    def revealed(self) -> bool:
        return self._value is None

    def reveal(self) -> str:
        if self._value is None:
            raise PasswordAlreadyRevealedError("Generated password was already disclosed")
        value, self._value = self._value, None
        return value

    def __repr__(self) -> str:
        return "GeneratedPassword(***)"

    __str__ = __repr__


__all__ = [
    "PASSWORD_ALPHABET",
    "PASSWORD_LENGTH",
    "GeneratedPassword",
    "PasswordAlreadyRevealedError",
    "generate_password",
]
