"""Tests for auth API routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from fixtures.auth import auth_header

from taskflow.core.auth.types import Role, User
from taskflow.core.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    InviteAlreadyUsedError,
    InviteExpiredError,
    InviteNotFoundError,
    InviteRequiredError,
)
from taskflow.entrypoints.api.app import create_app
from taskflow.entrypoints.api.deps import Settings, get_auth_service


@pytest.fixture
def mock_auth_service() -> MagicMock:
    """Create mock auth service."""
    return MagicMock()


@pytest.fixture
def app(mock_auth_service: MagicMock) -> FastAPI:
    """Create test app with mocked auth service."""
    app = create_app(Settings())
    app.dependency_overrides[get_auth_service] = lambda: mock_auth_service
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def session(sample_user: User) -> dict:
    """Service result for a successful login or registration."""
    return {"token": "header.payload.signature", "user": sample_user.to_public()}


REGISTER_BODY = {
    "name": "Dana Developer",
    "email": "dana@example.com",
    "password": "password123",  # pragma: allowlist secret
    "inviteCode": "DEVELOPER-ABCDEF123456",
}


class TestLoginEndpoint:
    """Test POST /api/auth/login."""

    def test_login_success(
        self, client: TestClient, mock_auth_service: MagicMock, session: dict
    ) -> None:
        """Should return token and camelCase user without the hash."""
        mock_auth_service.login = AsyncMock(return_value=session)

        response = client.post(
            "/api/auth/login",
            json={"email": "dana@example.com", "password": "password123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token"] == "header.payload.signature"
        assert data["user"]["email"] == "dana@example.com"
        assert "createdAt" in data["user"]
        assert "passwordHash" not in data["user"]
        assert "password_hash" not in data["user"]

    def test_login_sets_http_only_cookie(
        self, client: TestClient, mock_auth_service: MagicMock, session: dict
    ) -> None:
        """The token is also set as a strict, HTTP-only cookie."""
        mock_auth_service.login = AsyncMock(return_value=session)

        response = client.post(
            "/api/auth/login",
            json={"email": "dana@example.com", "password": "password123"},
        )

        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("access_token=header.payload.signature")
        assert "httponly" in cookie
        assert "samesite=strict" in cookie

    def test_login_invalid_credentials(
        self, client: TestClient, mock_auth_service: MagicMock
    ) -> None:
        """Should return 401 with a generic message."""
        mock_auth_service.login = AsyncMock(side_effect=InvalidCredentialsError())

        response = client.post(
            "/api/auth/login",
            json={"email": "dana@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json() == {
            "message": "Invalid email or password",
            "code": "INVALID_CREDENTIALS",
        }
        assert response.headers["www-authenticate"] == "Bearer"

    def test_login_malformed_email(self, client: TestClient) -> None:
        """Malformed input is a 400 with field errors."""
        response = client.post(
            "/api/auth/login",
            json={"email": "not-an-email", "password": "password123"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Validation failed"
        assert [e["field"] for e in data["errors"]] == ["email"]


class TestRegisterEndpoint:
    """Test POST /api/auth/register."""

    def test_register_success(
        self, client: TestClient, mock_auth_service: MagicMock, session: dict
    ) -> None:
        """Should create user and return token."""
        mock_auth_service.register = AsyncMock(return_value=session)

        response = client.post("/api/auth/register", json=REGISTER_BODY)

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "developer"
        assert "access_token=" in response.headers["set-cookie"]
        mock_auth_service.register.assert_awaited_once_with(
            name="Dana Developer",
            email="dana@example.com",
            password="password123",  # pragma: allowlist secret
            invite_code="DEVELOPER-ABCDEF123456",
            department=None,
            position=None,
        )

    def test_role_in_body_is_ignored(
        self, client: TestClient, mock_auth_service: MagicMock, session: dict
    ) -> None:
        """A role sent by the client never reaches the service."""
        mock_auth_service.register = AsyncMock(return_value=session)

        response = client.post("/api/auth/register", json={**REGISTER_BODY, "role": "admin"})

        assert response.status_code == 201
        assert "role" not in mock_auth_service.register.await_args.kwargs

    @pytest.mark.parametrize(
        ("error", "status", "code"),
        [
            (InviteRequiredError(), 400, "INVITE_REQUIRED"),
            (InviteNotFoundError(), 404, "INVITE_NOT_FOUND"),
            (InviteAlreadyUsedError(), 400, "INVITE_ALREADY_USED"),
            (InviteExpiredError(), 400, "INVITE_EXPIRED"),
            (EmailTakenError(), 400, "EMAIL_TAKEN"),
        ],
    )
    def test_register_errors(
        self,
        client: TestClient,
        mock_auth_service: MagicMock,
        error: Exception,
        status: int,
        code: str,
    ) -> None:
        """Domain errors map to their HTTP status and code."""
        mock_auth_service.register = AsyncMock(side_effect=error)

        response = client.post("/api/auth/register", json=REGISTER_BODY)

        assert response.status_code == status
        assert response.json()["code"] == code

    @pytest.mark.parametrize(
        ("override", "field"),
        [
            ({"name": "R2-D2"}, "name"),
            ({"name": "A"}, "name"),
            ({"password": "short"}, "password"),
            ({"password": "x" * 73}, "password"),
            ({"department": "d" * 101}, "department"),
        ],
    )
    def test_register_validation(
        self, client: TestClient, mock_auth_service: MagicMock, override: dict, field: str
    ) -> None:
        """Invalid fields are rejected before the service is called."""
        mock_auth_service.register = AsyncMock()

        response = client.post("/api/auth/register", json={**REGISTER_BODY, **override})

        assert response.status_code == 400
        assert field in [e["field"] for e in response.json()["errors"]]
        mock_auth_service.register.assert_not_awaited()

    def test_six_character_password_accepted(
        self, client: TestClient, mock_auth_service: MagicMock, session: dict
    ) -> None:
        """Register takes the same minimum password length as login."""
        mock_auth_service.register = AsyncMock(return_value=session)

        response = client.post(
            "/api/auth/register", json={**REGISTER_BODY, "password": "sixchr"}
        )

        assert response.status_code == 201
        assert mock_auth_service.register.await_args.kwargs["password"] == "sixchr"


class TestVerifyEndpoint:
    """Test POST /api/auth/verify."""

    def test_verify_valid_token(self, client: TestClient) -> None:
        """Valid tokens echo their claims."""
        response = client.post("/api/auth/verify", headers=auth_header(Role.MANAGER))

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["user"]["role"] == "manager"

    def test_verify_without_token(self, client: TestClient) -> None:
        """Missing token is 401."""
        response = client.post("/api/auth/verify")

        assert response.status_code == 401

    def test_verify_bad_token(self, client: TestClient) -> None:
        """Invalid token is 403."""
        response = client.post(
            "/api/auth/verify", headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == 403


class TestLogoutEndpoint:
    """Test POST /api/auth/logout."""

    def test_logout_clears_cookie(self, client: TestClient) -> None:
        """Logout expires the session cookie."""
        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("access_token=")
        assert "max-age=0" in cookie


class TestUnexpectedErrors:
    """Test the catch-all error handler."""

    def test_internal_error_is_hidden(self, app: FastAPI, mock_auth_service: MagicMock) -> None:
        """Unexpected exceptions become a generic 500."""
        mock_auth_service.login = AsyncMock(side_effect=RuntimeError("db password is hunter2"))
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(
            "/api/auth/login",
            json={"email": "dana@example.com", "password": "password123"},
        )

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
        assert "hunter2" not in response.text
