"""In-memory implementation of CredentialStore and InviteRegistry.

Suitable for development, tests, and single-process deployments. All
mutations run under one asyncio.Lock so check-then-set sequences (invite
redemption, email uniqueness) cannot interleave.
"""

import asyncio
from uuid import UUID, uuid4

from taskflow.core.auth.invites import ensure_redeemable
from taskflow.core.auth.tokens import Clock, generate_invite_code, get_invite_expiry, utc_now
from taskflow.core.auth.types import InviteCode, Role, User
from taskflow.core.exceptions import (
    EmailTakenError,
    InviteNotFoundError,
    InviteRedeemedError,
    UserNotFoundError,
)


class InMemoryAuthRepository:
    """Dict-backed user and invite store.

    Records are copied on the way in and out, so callers never hold a
    reference into the store.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        """Initialize an empty store.

        Args:
            clock: Source of the current time for timestamps and expiry.
        """
        self._clock = clock
        self._lock = asyncio.Lock()
        self._users: dict[UUID, User] = {}
        self._invites: dict[UUID, InviteCode] = {}

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        for user in self._users.values():
            if user.email == email:
                return user.model_copy()
        return None

    async def list_users(self) -> list[User]:
        """List all users ordered by name."""
        return [u.model_copy() for u in sorted(self._users.values(), key=lambda u: u.name)]

    async def count_users(self) -> int:
        """Number of stored users."""
        return len(self._users)

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: str | None = None,
        position: str | None = None,
    ) -> User:
        """Create a new user."""
        async with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise EmailTakenError()

            now = self._clock()
            user = User(
                id=uuid4(),
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                department=department,
                position=position,
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
            return user.model_copy()

    async def update_user(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        role: Role | None = None,
        department: str | None = None,
        position: str | None = None,
    ) -> User:
        """Update user fields."""
        async with self._lock:
            user = self._users.get(user_id)
            if not user:
                raise UserNotFoundError()

            if email is not None and any(
                u.email == email and u.id != user_id for u in self._users.values()
            ):
                raise EmailTakenError()

            updates = {
                "name": name,
                "email": email,
                "role": role,
                "department": department,
                "position": position,
            }
            changes = {k: v for k, v in updates.items() if v is not None}
            changes["updated_at"] = self._clock()

            updated = user.model_copy(update=changes)
            self._users[user_id] = updated
            return updated.model_copy()

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user."""
        async with self._lock:
            if self._users.pop(user_id, None) is None:
                raise UserNotFoundError()

    # Invite operations
    async def create_invite(
        self,
        role: Role,
        created_by: UUID | None,
        expires_in_days: int,
    ) -> InviteCode:
        """Create an active invite with a fresh random code."""
        async with self._lock:
            existing = {i.code for i in self._invites.values()}
            code = generate_invite_code(role)
            while code in existing:
                code = generate_invite_code(role)

            now = self._clock()
            invite = InviteCode(
                id=uuid4(),
                code=code,
                role=role,
                created_by=created_by,
                created_at=now,
                expires_at=get_invite_expiry(now, expires_in_days),
            )
            self._invites[invite.id] = invite
            return invite.model_copy()

    async def get_invite_by_code(self, code: str) -> InviteCode | None:
        """Get invite by its redemption code."""
        invite = self._find_by_code(code)
        return invite.model_copy() if invite else None

    async def get_invite_by_id(self, invite_id: UUID) -> InviteCode | None:
        """Get invite by ID."""
        invite = self._invites.get(invite_id)
        return invite.model_copy() if invite else None

    async def list_invites(self) -> list[InviteCode]:
        """List all invites, newest first."""
        ordered = sorted(self._invites.values(), key=lambda i: i.created_at, reverse=True)
        return [i.model_copy() for i in ordered]

    async def redeem_invite(self, code: str, user_id: UUID) -> InviteCode:
        """Consume an invite for ``user_id``."""
        async with self._lock:
            invite = self._find_by_code(code)
            if not invite:
                raise InviteNotFoundError()

            now = self._clock()
            ensure_redeemable(invite, now)

            redeemed = invite.model_copy(
                update={"used_by": user_id, "used_at": now, "is_active": False}
            )
            self._invites[invite.id] = redeemed
            return redeemed.model_copy()

    async def deactivate_invite(self, invite_id: UUID) -> InviteCode:
        """Set is_active to False. Idempotent."""
        async with self._lock:
            invite = self._invites.get(invite_id)
            if not invite:
                raise InviteNotFoundError()

            if invite.is_active:
                invite = invite.model_copy(update={"is_active": False})
                self._invites[invite_id] = invite
            return invite.model_copy()

    async def delete_invite(self, invite_id: UUID) -> None:
        """Delete an unredeemed invite."""
        async with self._lock:
            invite = self._invites.get(invite_id)
            if not invite:
                raise InviteNotFoundError()
            if invite.used_by is not None:
                raise InviteRedeemedError()
            del self._invites[invite_id]

    def _find_by_code(self, code: str) -> InviteCode | None:
        for invite in self._invites.values():
            if invite.code == code:
                return invite
        return None
