"""Auth domain types."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr


class Role(str, Enum):
    """User roles. Closed set; RBAC checks are made against these values only."""

    ADMIN = "admin"
    MANAGER = "manager"
    DEVELOPER = "developer"


class InviteStatus(str, Enum):
    """Derived lifecycle state of an invite code.

    Not stored. EXPIRED and DEACTIVATED both look like an unused invite in
    storage and are told apart by timestamps and the is_active flag.
    """

    ACTIVE = "active"
    REDEEMED = "redeemed"
    EXPIRED = "expired"
    DEACTIVATED = "deactivated"


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return email.strip().lower()


class User(BaseModel):
    """User domain model."""

    id: UUID
    name: str
    email: EmailStr
    password_hash: str
    role: Role
    department: str | None = None
    position: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    def to_public(self) -> dict[str, Any]:
        """Serializable view without the password hash."""
        return self.model_dump(exclude={"password_hash"})


class InviteCode(BaseModel):
    """Invite code domain model."""

    id: UUID
    code: str
    role: Role
    created_by: UUID | None = None
    created_at: datetime
    expires_at: datetime
    used_by: UUID | None = None
    used_at: datetime | None = None
    is_active: bool = True

    def status(self, now: datetime) -> InviteStatus:
        """Derive the lifecycle state at ``now``.

        Redemption wins over deactivation, which wins over expiry.
        """
        if self.used_by is not None:
            return InviteStatus.REDEEMED
        if not self.is_active:
            return InviteStatus.DEACTIVATED
        if now > self.expires_at:
            return InviteStatus.EXPIRED
        return InviteStatus.ACTIVE

    def is_redeemable(self, now: datetime) -> bool:
        """True iff active, unused and not past expiry."""
        return self.status(now) is InviteStatus.ACTIVE


class InviteDetails(BaseModel):
    """Invite enriched with display names for the admin listing."""

    invite: InviteCode
    creator_name: str
    used_by_name: str | None = None
    status: InviteStatus


class TokenPayload(BaseModel):
    """JWT token payload claims."""

    sub: str  # user_id
    email: str
    role: Role
    name: str
    exp: int  # expiration timestamp
    iat: int  # issued at timestamp
