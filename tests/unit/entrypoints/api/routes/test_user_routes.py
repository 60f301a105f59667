"""Tests for user management routes."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from fixtures.auth import auth_header

from taskflow.core.auth.types import Role, User
from taskflow.core.exceptions import EmailTakenError, UserNotFoundError
from taskflow.entrypoints.api.app import create_app
from taskflow.entrypoints.api.deps import Settings, get_user_service


@pytest.fixture
def mock_user_service() -> MagicMock:
    """Create mock user service."""
    return MagicMock()


@pytest.fixture
def client(mock_user_service: MagicMock) -> TestClient:
    """Create test client with mocked user service."""
    app: FastAPI = create_app(Settings())
    app.dependency_overrides[get_user_service] = lambda: mock_user_service
    return TestClient(app)


class TestListUsers:
    """Test GET /api/users."""

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.MANAGER])
    def test_staff_can_list(
        self, client: TestClient, mock_user_service: MagicMock, sample_user: User, role: Role
    ) -> None:
        """Admins and managers can list users; hashes never leak."""
        mock_user_service.list_users = AsyncMock(return_value=[sample_user])

        response = client.get("/api/users", headers=auth_header(role))

        assert response.status_code == 200
        [item] = response.json()
        assert item["email"] == sample_user.email
        assert "passwordHash" not in item
        assert "password_hash" not in item

    def test_developer_cannot_list(self, client: TestClient) -> None:
        """Developers are forbidden."""
        assert client.get("/api/users", headers=auth_header(Role.DEVELOPER)).status_code == 403


class TestCreateUser:
    """Test POST /api/users."""

    def test_admin_creates_user(
        self, client: TestClient, mock_user_service: MagicMock, sample_user: User
    ) -> None:
        """Admins create users with an explicit role."""
        mock_user_service.create_user = AsyncMock(return_value=sample_user)
        admin_id = uuid4()

        response = client.post(
            "/api/users",
            json={
                "name": "Dana Developer",
                "email": "dana@example.com",
                "password": "password123",  # pragma: allowlist secret
                "role": "developer",
                "department": "Engineering",
            },
            headers=auth_header(Role.ADMIN, admin_id),
        )

        assert response.status_code == 201
        assert response.json()["id"] == str(sample_user.id)
        kwargs = mock_user_service.create_user.await_args.kwargs
        assert kwargs["role"] == "developer"
        assert kwargs["created_by"] == admin_id

    def test_manager_cannot_create(self, client: TestClient) -> None:
        """User creation is admin only."""
        response = client.post(
            "/api/users",
            json={
                "name": "Some One",
                "email": "someone@example.com",
                "password": "password123",  # pragma: allowlist secret
                "role": "developer",
            },
            headers=auth_header(Role.MANAGER),
        )

        assert response.status_code == 403

    def test_duplicate_email(self, client: TestClient, mock_user_service: MagicMock) -> None:
        """Duplicate emails are a 400."""
        mock_user_service.create_user = AsyncMock(side_effect=EmailTakenError())

        response = client.post(
            "/api/users",
            json={
                "name": "Some One",
                "email": "someone@example.com",
                "password": "password123",  # pragma: allowlist secret
                "role": "developer",
            },
            headers=auth_header(Role.ADMIN),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "EMAIL_TAKEN"


class TestUpdateUser:
    """Test PUT /api/users/{id}."""

    def test_admin_updates_role(
        self, client: TestClient, mock_user_service: MagicMock, sample_user: User
    ) -> None:
        """Only provided fields are forwarded."""
        promoted = sample_user.model_copy(update={"role": Role.MANAGER})
        mock_user_service.update_user = AsyncMock(return_value=promoted)

        response = client.put(
            f"/api/users/{sample_user.id}",
            json={"role": "manager"},
            headers=auth_header(Role.ADMIN),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "manager"
        kwargs = mock_user_service.update_user.await_args.kwargs
        assert kwargs["role"] == "manager"
        assert kwargs["name"] is None

    def test_missing_user(self, client: TestClient, mock_user_service: MagicMock) -> None:
        """Unknown ids are 404."""
        mock_user_service.update_user = AsyncMock(side_effect=UserNotFoundError())

        response = client.put(
            f"/api/users/{uuid4()}", json={"name": "New Name"}, headers=auth_header(Role.ADMIN)
        )

        assert response.status_code == 404

    def test_invalid_name(self, client: TestClient, mock_user_service: MagicMock) -> None:
        """Names are validated on update too."""
        mock_user_service.update_user = AsyncMock()

        response = client.put(
            f"/api/users/{uuid4()}", json={"name": "B0b"}, headers=auth_header(Role.ADMIN)
        )

        assert response.status_code == 400
        mock_user_service.update_user.assert_not_awaited()


class TestDeleteUser:
    """Test DELETE /api/users/{id}."""

    def test_admin_deletes(self, client: TestClient, mock_user_service: MagicMock) -> None:
        """Admins can delete users."""
        mock_user_service.delete_user = AsyncMock(return_value=None)
        user_id = uuid4()

        response = client.delete(f"/api/users/{user_id}", headers=auth_header(Role.ADMIN))

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted"}

    def test_manager_cannot_delete(self, client: TestClient) -> None:
        """Deletion is admin only."""
        response = client.delete(f"/api/users/{uuid4()}", headers=auth_header(Role.MANAGER))

        assert response.status_code == 403
