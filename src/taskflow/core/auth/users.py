"""Admin user management."""

from uuid import UUID

import structlog

from taskflow.core.auth.invites import parse_role
from taskflow.core.auth.password import hash_password
from taskflow.core.auth.repository import CredentialStore
from taskflow.core.auth.types import Role, User, normalize_email
from taskflow.core.exceptions import EmailTakenError, UserNotFoundError

logger = structlog.get_logger()


class UserService:
    """User CRUD for administrators.

    Role changes made here do not reach tokens that were already issued;
    the affected user sees the new role after their next login.
    """

    def __init__(self, users: CredentialStore) -> None:
        """Initialize with credential store.

        Args:
            users: Credential store.
        """
        self._users = users

    async def list_users(self) -> list[User]:
        """List all users."""
        return await self._users.list_users()

    async def get_user(self, user_id: UUID) -> User:
        """Get a user or raise UserNotFoundError."""
        user = await self._users.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: str | Role,
        department: str | None = None,
        position: str | None = None,
        created_by: UUID | None = None,
    ) -> User:
        """Create a user directly, bypassing the invite flow.

        Raises:
            InvalidRoleError: If ``role`` is not a known role.
            EmailTakenError: If the email is already registered.
        """
        user_role = parse_role(role)
        email = normalize_email(email)
        if await self._users.get_user_by_email(email):
            raise EmailTakenError()

        user = await self._users.create_user(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=user_role,
            department=department,
            position=position,
        )
        logger.info(
            "user_created",
            user_id=str(user.id),
            role=user.role.value,
            created_by=str(created_by),
        )
        return user

    async def update_user(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        role: str | Role | None = None,
        department: str | None = None,
        position: str | None = None,
        updated_by: UUID | None = None,
    ) -> User:
        """Update a user's profile or role.

        Raises:
            UserNotFoundError: If no such user exists.
            InvalidRoleError: If ``role`` is not a known role.
            EmailTakenError: If the new email belongs to another user.
        """
        user = await self._users.update_user(
            user_id,
            name=name,
            email=normalize_email(email) if email is not None else None,
            role=parse_role(role) if role is not None else None,
            department=department,
            position=position,
        )
        logger.info(
            "user_updated",
            user_id=str(user_id),
            role=user.role.value,
            updated_by=str(updated_by),
        )
        return user

    async def delete_user(self, user_id: UUID, deleted_by: UUID | None = None) -> None:
        """Delete a user. Invites they redeemed keep pointing at their id."""
        await self._users.delete_user(user_id)
        logger.info("user_deleted", user_id=str(user_id), deleted_by=str(deleted_by))
