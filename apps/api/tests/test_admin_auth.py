"""Admin authentication selector and adapter tests."""

from __future__ import annotations

import sys
import types
import unittest
from unittest.mock import patch

from fastapi import Request
from fastapi.testclient import TestClient

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.adapters.auth.firebase_auth import FirebaseTokenVerifier
from app.adapters.auth.mock_auth import MockTokenVerifier
from app.adapters.passwords import BcryptPasswordHasher
from app.core.config import Settings
from app.core.logging_safety import redact_secret
from app.main import create_app
from app.repositories.memory import InMemoryUserStore
from app.repositories.users import BalanceConfig
from app.routes.dependencies import get_account_service, get_token_verifier
from app.schemas.auth import Role, TokenClaims
from app.schemas.error import ErrorCode
from app.services.accounts import AccountService
from app.services.admin_auth import (
    SERVICE_PRINCIPAL,
    AdminAuthSelector,
    ApiKeyAuthenticated,
    AuthRejected,
    AuthRequest,
    SessionAuthenticated,
)
from app.services.policy import DomainPolicy
from settings_env import TEST_API_KEY as _API_KEY, SettingsEnvCase


class _CountingVerifier(TokenVerifier):
    def __init__(self) -> None:
        self.calls: list[str] = []
        self._delegate = MockTokenVerifier()

    def verify_token(self, token: str) -> TokenClaims:
        self.calls.append(token)
        return self._delegate.verify_token(token)


def _seed_account(store: InMemoryUserStore, *, username: str, role: Role) -> str:
    record = store.create_user(
        {
            "email": f"{username}@example.com",
            "username": username,
            "name": username.title(),
            "role": role,
            "password_hash": "seeded-hash",
            "email_verified": True,
        },
        BalanceConfig(),
    )
    return record.id


def _request(
    *,
    api_key: str | None = None,
    alternate_key: str | None = None,
    bearer: str | None = None,
) -> AuthRequest:
    return AuthRequest(
        api_keys=(api_key, alternate_key),
        bearer_token=bearer,
        client_ip="203.0.113.7",
        user_agent="pytest-agent/1.0",
        method="GET",
        path="/api/v1/users",
    )


class AdminAuthSelectorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryUserStore()
        self.verifier = _CountingVerifier()
        self.selector = AdminAuthSelector(api_key=_API_KEY, verifier=self.verifier, store=self.store)
        self.admin_id = _seed_account(self.store, username="root", role=Role.ADMIN)
        self.user_id = _seed_account(self.store, username="member", role=Role.USER)

    def test_matching_key_yields_synthetic_admin_principal(self) -> None:
        outcome = self.selector.authenticate(_request(api_key=_API_KEY))

        self.assertIsInstance(outcome, ApiKeyAuthenticated)
        self.assertEqual(outcome.principal, SERVICE_PRINCIPAL)
        self.assertEqual(outcome.principal.role, Role.ADMIN)

    def test_alias_header_is_accepted(self) -> None:
        outcome = self.selector.authenticate(_request(alternate_key=_API_KEY))

        self.assertIsInstance(outcome, ApiKeyAuthenticated)

    def test_key_path_takes_precedence_over_session_token(self) -> None:
        outcome = self.selector.authenticate(
            _request(api_key="wrong-key-abcdefgh-1234", bearer=f"test:{self.admin_id}")
        )

        self.assertIsInstance(outcome, AuthRejected)
        self.assertEqual(outcome.error, ErrorCode.INVALID_API_KEY)
        self.assertEqual(outcome.status_code, 401)
        self.assertEqual(self.verifier.calls, [])

    def test_correct_key_ignores_invalid_session_token(self) -> None:
        outcome = self.selector.authenticate(_request(api_key=_API_KEY, bearer="garbage"))

        self.assertIsInstance(outcome, ApiKeyAuthenticated)
        self.assertEqual(self.verifier.calls, [])

    def test_missing_configured_key_is_configuration_error(self) -> None:
        selector = AdminAuthSelector(api_key=None, verifier=self.verifier, store=self.store)

        with self.assertLogs("app.services.admin_auth", level="ERROR"):
            outcome = selector.authenticate(_request(api_key=_API_KEY))

        self.assertEqual(outcome.status_code, 500)
        self.assertEqual(outcome.error, ErrorCode.CONFIGURATION_ERROR)

    def test_empty_key_header_is_missing_key(self) -> None:
        outcome = self.selector.authenticate(_request(api_key="  "))

        self.assertEqual(outcome.status_code, 401)
        self.assertEqual(outcome.error, ErrorCode.MISSING_API_KEY)

    def test_rejected_key_is_logged_redacted_with_request_context(self) -> None:
        provided = "wrong-key-abcdefgh-1234"

        with self.assertLogs("app.services.admin_auth", level="WARNING") as captured:
            self.selector.authenticate(_request(api_key=provided))

        output = "\n".join(captured.output)
        self.assertNotIn(provided, output)
        self.assertIn("wrong-ke***", output)
        self.assertIn("203.0.113.7", output)
        self.assertIn("pytest-agent/1.0", output)
        self.assertIn("GET /api/v1/users", output)

    def test_accepted_key_is_never_logged(self) -> None:
        with self.assertLogs("app.services.admin_auth", level="INFO") as captured:
            self.selector.authenticate(_request(api_key=_API_KEY))

        self.assertNotIn(_API_KEY, "\n".join(captured.output))

    def test_admin_session_yields_account_principal(self) -> None:
        outcome = self.selector.authenticate(_request(bearer=f"test:{self.admin_id}"))

        self.assertIsInstance(outcome, SessionAuthenticated)
        self.assertEqual(outcome.principal.id, self.admin_id)
        self.assertEqual(outcome.principal.email, "root@example.com")
        self.assertEqual(outcome.principal.display_name, "Root")

    def test_non_admin_session_is_forbidden(self) -> None:
        outcome = self.selector.authenticate(_request(bearer=f"test:{self.user_id}"))

        self.assertEqual(outcome.status_code, 403)
        self.assertEqual(outcome.error, ErrorCode.FORBIDDEN)

    def test_unauthenticated_session_variants(self) -> None:
        for bearer in (None, "", "not-a-test-token", "test:unknown-account"):
            with self.subTest(bearer=bearer):
                outcome = self.selector.authenticate(_request(bearer=bearer))
                self.assertEqual(outcome.status_code, 401)
                self.assertEqual(outcome.error, ErrorCode.UNAUTHORIZED)

    def test_store_failure_during_session_lookup_is_internal_error(self) -> None:
        self.store.failure_message = "store offline"

        with self.assertLogs("app.services.admin_auth", level="ERROR"):
            outcome = self.selector.authenticate(_request(bearer=f"test:{self.admin_id}"))

        self.assertEqual(outcome.status_code, 500)
        self.assertEqual(outcome.error, ErrorCode.INTERNAL_ERROR)


class RedactSecretTests(unittest.TestCase):
    def test_keeps_short_prefix_only(self) -> None:
        self.assertEqual(redact_secret("abcdefghijklmnop"), "abcdefgh***")
        self.assertEqual(redact_secret("abcd"), "ab***")
        self.assertEqual(redact_secret(""), "***")
        self.assertEqual(redact_secret(None), "***")


class AdminAuthApiTests(SettingsEnvCase):
    def test_missing_credentials_return_401_envelope(self) -> None:
        client = TestClient(create_app())

        response = client.get("/api/v1/users")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(
            response.json(),
            {"success": False, "message": "Unauthorized", "error": "UNAUTHORIZED"},
        )

    def test_valid_key_reaches_handler_for_any_route(self) -> None:
        client = TestClient(create_app())
        headers = {"X-API-Key": _API_KEY}

        self.assertEqual(client.get("/api/v1/users", headers=headers).status_code, 200)
        self.assertEqual(client.delete("/api/v1/users/missing", headers=headers).status_code, 404)

    def test_wrong_key_rejected_even_with_admin_session(self) -> None:
        app = create_app()
        client = TestClient(app)
        admin_id = _seed_account(app.state.store, username="root", role=Role.ADMIN)

        response = client.get(
            "/api/v1/users",
            headers={"X-API-Key": "nope", "Authorization": f"Bearer test:{admin_id}"},
        )

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "INVALID_API_KEY")

    def test_empty_key_header_returns_missing_api_key(self) -> None:
        client = TestClient(create_app())

        response = client.get("/api/v1/users", headers={"X-API-Key": ""})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "MISSING_API_KEY")

    def test_alternate_key_header_is_accepted(self) -> None:
        client = TestClient(create_app())

        response = client.get("/api/v1/users", headers={"X-Account-Admin-Key": _API_KEY})

        self.assertEqual(response.status_code, 200)

    def test_non_bearer_or_empty_authorization_returns_401(self) -> None:
        app = create_app()
        client = TestClient(app)
        admin_id = _seed_account(app.state.store, username="root", role=Role.ADMIN)

        for authorization in ("Basic abc", "Bearer ", f"Token test:{admin_id}", "Bearer not-a-test-token"):
            with self.subTest(authorization=authorization):
                response = client.get("/api/v1/users", headers={"Authorization": authorization})
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.json()["error"], "UNAUTHORIZED")

    def test_openapi_declares_security_schemes(self) -> None:
        client = TestClient(create_app())

        schemes = client.get("/openapi.json").json()["components"]["securitySchemes"]

        self.assertEqual(schemes["bearerAuth"], {"type": "http", "scheme": "bearer"})
        self.assertEqual(schemes["apiKey"], {"type": "apiKey", "in": "header", "name": "X-API-Key"})
        self.assertEqual(
            schemes["accountAdminKey"],
            {"type": "apiKey", "in": "header", "name": "X-Account-Admin-Key"},
        )

    def test_admin_session_is_accepted_and_attached_to_request_state(self) -> None:
        app = create_app()
        client = TestClient(app)
        admin_id = _seed_account(app.state.store, username="root", role=Role.ADMIN)
        observed: dict[str, str] = {}
        def _override(request: Request) -> AccountService:
            observed["id"] = request.state.auth_principal.id
            observed["method"] = request.state.auth_method
            return AccountService(
                store=app.state.store,
                hasher=BcryptPasswordHasher(rounds=4),
                domain_policy=DomainPolicy(),
                balance_config=BalanceConfig(),
            )

        app.dependency_overrides[get_account_service] = _override

        response = client.get("/api/v1/users", headers={"Authorization": f"Bearer test:{admin_id}"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(observed, {"id": admin_id, "method": "session"})

    def test_non_admin_session_returns_403_and_no_side_effect(self) -> None:
        app = create_app()
        client = TestClient(app)
        user_id = _seed_account(app.state.store, username="member", role=Role.USER)
        writes_before = app.state.store.user_write_count

        response = client.post(
            "/api/v1/users",
            headers={"Authorization": f"Bearer test:{user_id}"},
            json={"email": "x@y.com", "name": "X", "username": "x1"},
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "FORBIDDEN")
        self.assertEqual(app.state.store.user_write_count, writes_before)


class MissingApiKeyConfigApiTests(SettingsEnvCase):
    api_key = None

    def test_key_header_without_server_key_returns_500_configuration_error(self) -> None:
        client = TestClient(create_app())

        response = client.get("/api/v1/users", headers={"X-API-Key": "anything"})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "CONFIGURATION_ERROR")


class AuthAdapterUnitTests(unittest.TestCase):
    def test_mock_token_verifier_extracts_user_id(self) -> None:
        claims = MockTokenVerifier().verify_token("test:user-999")

        self.assertEqual(claims.user_id, "user-999")

    def test_mock_token_verifier_rejects_invalid_token(self) -> None:
        verifier = MockTokenVerifier()

        for token in ("invalid", "test:", "other:user-1"):
            with self.subTest(token=token):
                with self.assertRaises(AuthVerificationError):
                    verifier.verify_token(token)

    def test_dependency_selects_firebase_verifier(self) -> None:
        settings = Settings(
            auth_provider="firebase",
            api_key="secret",
            firebase_project_id="project-a",
            firebase_audience="aud-a",
        )

        verifier = get_token_verifier(settings)

        self.assertIsInstance(verifier, FirebaseTokenVerifier)


class FirebaseVerifierUnitTests(unittest.TestCase):
    @staticmethod
    def _fake_firebase_modules(decoded_token: dict[str, str]) -> dict[str, types.ModuleType]:
        fake_admin = types.ModuleType("firebase_admin")
        fake_auth = types.ModuleType("firebase_admin.auth")

        fake_admin._apps = []

        def initialize_app() -> object:
            app_handle = object()
            fake_admin._apps.append(app_handle)
            return app_handle

        def verify_id_token(token: str, check_revoked: bool = True) -> dict[str, str]:
            if token != "valid-jwt":
                raise ValueError("invalid token")
            if not check_revoked:
                raise ValueError("must validate revoked tokens")
            return decoded_token

        fake_admin.initialize_app = initialize_app
        fake_admin.auth = fake_auth
        fake_auth.verify_id_token = verify_id_token

        return {
            "firebase_admin": fake_admin,
            "firebase_admin.auth": fake_auth,
        }

    def test_firebase_verifier_extracts_user_id(self) -> None:
        fake_modules = self._fake_firebase_modules(
            {
                "uid": "firebase-user-1",
                "aud": "aud-a",
                "iss": "https://securetoken.google.com/project-a",
            }
        )

        with patch.dict(sys.modules, fake_modules):
            verifier = FirebaseTokenVerifier(project_id="project-a", audience="aud-a")
            claims = verifier.verify_token("valid-jwt")

        self.assertEqual(claims.user_id, "firebase-user-1")

    def test_firebase_verifier_rejects_invalid_audience(self) -> None:
        fake_modules = self._fake_firebase_modules(
            {
                "uid": "firebase-user-1",
                "aud": "unexpected-aud",
                "iss": "https://securetoken.google.com/project-a",
            }
        )

        with patch.dict(sys.modules, fake_modules):
            verifier = FirebaseTokenVerifier(project_id="project-a", audience="aud-a")
            with self.assertRaises(AuthVerificationError):
                verifier.verify_token("valid-jwt")

    def test_firebase_verifier_rejects_token_without_identity(self) -> None:
        fake_modules = self._fake_firebase_modules({"aud": "aud-a", "iss": "https://securetoken.google.com/project-a"})

        with patch.dict(sys.modules, fake_modules):
            verifier = FirebaseTokenVerifier(project_id="project-a", audience="aud-a")
            with self.assertRaises(AuthVerificationError):
                verifier.verify_token("valid-jwt")


if __name__ == "__main__":
    unittest.main()
