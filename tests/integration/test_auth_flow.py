"""
Integration tests for the full authentication flow.

Runs the real application (lifespan, dependency wiring, routes) with the
in-memory storage backend and the console email sender; one-time codes
are read back from the logs. Expiry scenarios use a router wired to a
service with a controllable clock.
"""

import logging
import re
from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from clubauth.api.dependencies import get_auth_service
from clubauth.api.errors import register_exception_handlers
from clubauth.api.main import app
from clubauth.api.v1.routes import router
from clubauth.config.settings import get_settings
from clubauth.domain.auth import AuthService

SIGNUP = {
    "name": "Chess Club",
    "description": "We play chess",
    "email": "a@x.com",
    "password": "secret1",
}


def code_from_logs(caplog: pytest.LogCaptureFixture, email: str) -> str:
    matches = re.findall(rf"Email: {re.escape(email)} Code: (\d{{6}})", caplog.text)
    assert matches, f"no code logged for {email}"
    return matches[-1]


def other_code(code: str) -> str:
    return "000000" if code != "000000" else "111111"


@pytest.fixture
def client(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> Generator[TestClient, None, None]:
    """Run the application with in-memory storage and console email."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("SMTP_HOST", "")
    monkeypatch.setenv("BCRYPT_COST", "4")
    get_settings.cache_clear()
    caplog.set_level(logging.INFO)
    with TestClient(app) as test_client:
        yield test_client
    get_settings.cache_clear()


@pytest.fixture
def clock_client(auth_service: AuthService) -> TestClient:
    """Router wired to the shared fake-clock service fixture."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(router, prefix="/v1")
    test_app.dependency_overrides[get_auth_service] = lambda: auth_service
    return TestClient(test_app)


class TestSignupVerifyLogin:
    def test_full_flow(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        """signup -> wrong code -> right code -> login -> replayed code."""
        response = client.post("/v1/signup", json=SIGNUP)
        assert response.status_code == 201
        assert response.json()["email"] == "a@x.com"
        code = code_from_logs(caplog, "a@x.com")

        response = client.post("/v1/verify-otp", json={"email": "a@x.com", "otp": other_code(code)})
        assert response.status_code == 400

        response = client.post("/v1/verify-otp", json={"email": "a@x.com", "otp": code})
        assert response.status_code == 200
        assert response.json()["token"]
        assert response.json()["account"]["name"] == "Chess Club"

        response = client.post("/v1/login", json={"email": "a@x.com", "password": "secret1"})
        assert response.status_code == 200

        response = client.post("/v1/verify-otp", json={"email": "a@x.com", "otp": code})
        assert response.status_code == 400

    def test_login_before_verification(self, client: TestClient) -> None:
        client.post("/v1/signup", json=SIGNUP)
        response = client.post("/v1/login", json={"email": "a@x.com", "password": "secret1"})
        assert response.status_code == 403

    def test_login_unknown_email(self, client: TestClient) -> None:
        response = client.post("/v1/login", json={"email": "no@x.com", "password": "secret1"})
        assert response.status_code == 401

    def test_mixed_case_email_is_one_account(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        client.post("/v1/signup", json={**SIGNUP, "email": "A@X.COM"})
        code = code_from_logs(caplog, "a@x.com")
        response = client.post("/v1/verify-otp", json={"email": "a@X.com", "otp": code})
        assert response.status_code == 200

        response = client.post("/v1/signup", json={**SIGNUP, "name": "Other", "email": "a@x.com"})
        assert response.status_code == 400

    def test_resend_then_verify(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        client.post("/v1/signup", json=SIGNUP)
        assert client.post("/v1/resend-otp", json={"email": "a@x.com"}).status_code == 200
        code = code_from_logs(caplog, "a@x.com")

        response = client.post("/v1/verify-otp", json={"email": "a@x.com", "otp": code})
        assert response.status_code == 200

        # Account is verified now; nothing left to resend
        assert client.post("/v1/resend-otp", json={"email": "a@x.com"}).status_code == 404


class TestPasswordRecovery:
    def verified(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        client.post("/v1/signup", json=SIGNUP)
        code = code_from_logs(caplog, "a@x.com")
        client.post("/v1/verify-otp", json={"email": "a@x.com", "otp": code})

    def test_forgot_password_unverified(self, client: TestClient) -> None:
        client.post("/v1/signup", json=SIGNUP)
        response = client.post("/v1/forgot-password", json={"email": "a@x.com"})
        assert response.status_code == 404

    def test_reset_with_signup_code_leaves_it_usable(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        client.post("/v1/signup", json=SIGNUP)
        code = code_from_logs(caplog, "a@x.com")

        response = client.post(
            "/v1/reset-password",
            json={"email": "a@x.com", "otp": code, "newPassword": "newsecret"},
        )
        assert response.status_code == 404

        response = client.post("/v1/verify-otp", json={"email": "a@x.com", "otp": code})
        assert response.status_code == 200

    def test_reset_and_login(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        self.verified(client, caplog)
        assert client.post("/v1/forgot-password", json={"email": "a@x.com"}).status_code == 200
        code = code_from_logs(caplog, "a@x.com")

        response = client.post(
            "/v1/reset-password",
            json={"email": "a@x.com", "otp": code, "newPassword": "newsecret"},
        )
        assert response.status_code == 200

        old = client.post("/v1/login", json={"email": "a@x.com", "password": "secret1"})
        new = client.post("/v1/login", json={"email": "a@x.com", "password": "newsecret"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_reset_with_expired_code(self, clock_client: TestClient, sender, clock) -> None:
        """Forgot password, then reset with a code older than 10 minutes."""
        clock_client.post("/v1/signup", json=SIGNUP)
        clock_client.post(
            "/v1/verify-otp", json={"email": "a@x.com", "otp": sender.last_code("a@x.com")}
        )
        assert clock_client.post("/v1/forgot-password", json={"email": "a@x.com"}).status_code == 200

        clock.advance(minutes=11)
        response = clock_client.post(
            "/v1/reset-password",
            json={"email": "a@x.com", "otp": sender.last_code("a@x.com"), "newPassword": "newsecret"},
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid or expired OTP"}


class TestProtectedEndpoints:
    def login_token(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> str:
        client.post("/v1/signup", json=SIGNUP)
        code = code_from_logs(caplog, "a@x.com")
        return client.post("/v1/verify-otp", json={"email": "a@x.com", "otp": code}).json()["token"]

    def test_me(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        token = self.login_token(client, caplog)

        response = client.get("/v1/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "a@x.com"

    def test_delete_me(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        token = self.login_token(client, caplog)
        headers = {"Authorization": f"Bearer {token}"}

        assert client.delete("/v1/me", headers=headers).status_code == 204
        assert client.get("/v1/me", headers=headers).status_code == 401

        # Name and email are free again
        assert client.post("/v1/signup", json=SIGNUP).status_code == 201

    def test_me_without_token(self, client: TestClient) -> None:
        assert client.get("/v1/me").status_code == 401


class TestHealth:
    def test_health_with_memory_backend(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
