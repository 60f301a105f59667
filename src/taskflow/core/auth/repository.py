"""Repository protocols for users and invite codes.

Handlers and services depend on these protocols, never on a concrete store.
Every mutating method must be atomic with respect to other calls on the
same record.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from taskflow.core.auth.types import InviteCode, Role, User


@runtime_checkable
class CredentialStore(Protocol):
    """Protocol for user storage.

    Emails passed in are already normalized by the caller; implementations
    enforce uniqueness on that form.
    """

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        ...

    async def list_users(self) -> list[User]:
        """List all users ordered by name."""
        ...

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: str | None = None,
        position: str | None = None,
    ) -> User:
        """Create a new user.

        Raises:
            EmailTakenError: If the email is already registered.
        """
        ...

    async def update_user(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        role: Role | None = None,
        department: str | None = None,
        position: str | None = None,
    ) -> User:
        """Update user fields; None leaves a field unchanged.

        Raises:
            UserNotFoundError: If no such user exists.
            EmailTakenError: If the new email belongs to another user.
        """
        ...

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user.

        Raises:
            UserNotFoundError: If no such user exists.
        """
        ...

    async def count_users(self) -> int:
        """Number of stored users."""
        ...


@runtime_checkable
class InviteRegistry(Protocol):
    """Protocol for invite code storage and lifecycle transitions."""

    async def create_invite(
        self,
        role: Role,
        created_by: UUID | None,
        expires_in_days: int,
    ) -> InviteCode:
        """Create an active invite with a fresh random code."""
        ...

    async def get_invite_by_code(self, code: str) -> InviteCode | None:
        """Get invite by its redemption code."""
        ...

    async def get_invite_by_id(self, invite_id: UUID) -> InviteCode | None:
        """Get invite by ID."""
        ...

    async def list_invites(self) -> list[InviteCode]:
        """List all invites, newest first."""
        ...

    async def redeem_invite(self, code: str, user_id: UUID) -> InviteCode:
        """Consume an invite for ``user_id``.

        Checks existence, then not-used-and-active, then expiry. The
        check-then-set must be atomic so that of several concurrent calls for
        one code exactly one succeeds.

        Raises:
            InviteNotFoundError: If no invite has this code.
            InviteAlreadyUsedError: If it was redeemed or deactivated.
            InviteExpiredError: If it is past its expiry.
        """
        ...

    async def deactivate_invite(self, invite_id: UUID) -> InviteCode:
        """Set is_active to False without touching used_by/used_at. Idempotent.

        Raises:
            InviteNotFoundError: If no such invite exists.
        """
        ...

    async def delete_invite(self, invite_id: UUID) -> None:
        """Delete an unredeemed invite.

        Raises:
            InviteNotFoundError: If no such invite exists.
            InviteRedeemedError: If the invite has been redeemed.
        """
        ...
