"""Invite issuance policy and administration."""

from datetime import datetime
from uuid import UUID

import structlog

from taskflow.core.auth.repository import CredentialStore, InviteRegistry
from taskflow.core.auth.tokens import (
    DEFAULT_INVITE_EXPIRY_DAYS,
    MAX_INVITE_EXPIRY_DAYS,
    Clock,
    utc_now,
)
from taskflow.core.auth.types import InviteCode, InviteDetails, InviteStatus, Role
from taskflow.core.exceptions import (
    InvalidRoleError,
    InviteAlreadyUsedError,
    InviteExpiredError,
    InviteNotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = structlog.get_logger()

# Which invite roles each issuer role may mint
ISSUABLE_ROLES: dict[Role, frozenset[Role]] = {
    Role.ADMIN: frozenset({Role.ADMIN, Role.MANAGER, Role.DEVELOPER}),
    Role.MANAGER: frozenset({Role.MANAGER, Role.DEVELOPER}),
    Role.DEVELOPER: frozenset(),
}


def parse_role(value: str | Role) -> Role:
    """Convert user input to a Role.

    Raises:
        InvalidRoleError: If the value is not a known role.
    """
    try:
        return Role(value)
    except ValueError:
        raise InvalidRoleError(details={"allowed": [r.value for r in Role]}) from None


def can_issue_invite(issuer_role: Role, invite_role: Role) -> bool:
    """Whether a user with ``issuer_role`` may create an invite for ``invite_role``."""
    return invite_role in ISSUABLE_ROLES[issuer_role]


def ensure_redeemable(invite: InviteCode, now: datetime) -> None:
    """Raise the lifecycle error matching why ``invite`` cannot be redeemed.

    Deactivated invites report as already used: any inactive code counts
    as consumed.

    Raises:
        InviteAlreadyUsedError: If redeemed or deactivated.
        InviteExpiredError: If past expiry.
    """
    status = invite.status(now)
    if status in (InviteStatus.REDEEMED, InviteStatus.DEACTIVATED):
        raise InviteAlreadyUsedError()
    if status is InviteStatus.EXPIRED:
        raise InviteExpiredError()


class InviteService:
    """Administrative operations over the invite registry."""

    def __init__(
        self,
        invites: InviteRegistry,
        users: CredentialStore,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize with stores.

        Args:
            invites: Invite registry.
            users: Credential store, used for creator/redeemer names.
            clock: Source of the current time.
        """
        self._invites = invites
        self._users = users
        self._clock = clock

    async def list_invites(self, viewer_role: Role) -> list[InviteDetails]:
        """List invites with creator and redeemer display names.

        Args:
            viewer_role: Role of the caller. Invites for roles the caller
                may not issue are left out, so their codes are never shown.

        Returns:
            Invites visible to the caller, newest first.
        """
        invites = [
            invite
            for invite in await self._invites.list_invites()
            if can_issue_invite(viewer_role, invite.role)
        ]
        names = {user.id: user.name for user in await self._users.list_users()}
        now = self._clock()

        return [
            InviteDetails(
                invite=invite,
                creator_name=names.get(invite.created_by, "Unknown"),
                used_by_name=names.get(invite.used_by),
                status=invite.status(now),
            )
            for invite in invites
        ]

    async def create_invite(
        self,
        issuer_id: UUID | None,
        issuer_role: Role,
        role: str | Role,
        expires_in_days: int = DEFAULT_INVITE_EXPIRY_DAYS,
    ) -> InviteCode:
        """Create an invite on behalf of an authenticated issuer.

        Args:
            issuer_id: ID of the user creating the invite.
            issuer_role: Role of that user, from their token.
            role: Role the invite will grant.
            expires_in_days: Days until the invite expires.

        Returns:
            The new invite.

        Raises:
            InvalidRoleError: If ``role`` is not a known role.
            PermissionDeniedError: If the issuer may not grant ``role``.
            ValidationError: If ``expires_in_days`` is out of range.
        """
        invite_role = parse_role(role)

        if not can_issue_invite(issuer_role, invite_role):
            logger.warning(
                "invite_creation_denied",
                issuer_id=str(issuer_id),
                issuer_role=issuer_role.value,
                invite_role=invite_role.value,
            )
            raise PermissionDeniedError(
                f"Role '{issuer_role.value}' cannot create invites for role '{invite_role.value}'"
            )

        if not 0 <= expires_in_days <= MAX_INVITE_EXPIRY_DAYS:
            raise ValidationError(
                f"expiresInDays must be between 0 and {MAX_INVITE_EXPIRY_DAYS}",
                details={"field": "expiresInDays"},
            )

        invite = await self._invites.create_invite(
            role=invite_role,
            created_by=issuer_id,
            expires_in_days=expires_in_days,
        )
        logger.info(
            "invite_created",
            invite_id=str(invite.id),
            role=invite.role.value,
            created_by=str(issuer_id),
            expires_at=invite.expires_at.isoformat(),
        )
        return invite

    async def validate_code(self, code: str) -> InviteCode:
        """Check whether ``code`` could be redeemed right now. Never mutates.

        Raises:
            InviteNotFoundError: If the code does not exist.
            InviteAlreadyUsedError: If it was used or deactivated.
            InviteExpiredError: If it has expired.
        """
        invite = await self._invites.get_invite_by_code(code.strip())
        if not invite:
            raise InviteNotFoundError()
        ensure_redeemable(invite, self._clock())
        return invite

    async def deactivate_invite(self, invite_id: UUID) -> InviteCode:
        """Deactivate an invite so it can no longer be redeemed."""
        invite = await self._invites.deactivate_invite(invite_id)
        logger.info("invite_deactivated", invite_id=str(invite_id))
        return invite

    async def delete_invite(self, invite_id: UUID) -> None:
        """Delete an unredeemed invite."""
        await self._invites.delete_invite(invite_id)
        logger.info("invite_deleted", invite_id=str(invite_id))
