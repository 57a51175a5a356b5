"""Environment-isolated settings fixture shared by the API test modules."""

from __future__ import annotations

import os
import unittest

from app.core.config import get_settings

TEST_API_KEY = "super-secret-admin-key-123"


class SettingsEnvCase(unittest.TestCase):
    """Points ``get_settings`` at a mock verifier and a cheap bcrypt cost for each test.

    Subclasses set ``api_key`` (``None`` leaves the key unconfigured) and
    ``extra_env`` for anything else the test needs.
    """

    env_keys = (
        "ACCOUNT_ADMIN_API_KEY",
        "ACCOUNT_ADMIN_AUTH_PROVIDER",
        "ACCOUNT_ADMIN_BCRYPT_ROUNDS",
        "ACCOUNT_ADMIN_ALLOWED_EMAIL_DOMAINS",
        "ACCOUNT_ADMIN_BALANCE_ENABLED",
        "ACCOUNT_ADMIN_START_BALANCE",
    )
    api_key: str | None = TEST_API_KEY
    extra_env: dict[str, str] = {}

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self.env_keys}
        for key in self.env_keys:
            os.environ.pop(key, None)
        os.environ["ACCOUNT_ADMIN_AUTH_PROVIDER"] = "mock"
        os.environ["ACCOUNT_ADMIN_BCRYPT_ROUNDS"] = "4"
        if self.api_key is not None:
            os.environ["ACCOUNT_ADMIN_API_KEY"] = self.api_key
        os.environ.update(self.extra_env)
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()
