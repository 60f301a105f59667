"""Auth service for login and invite-gated registration."""

from typing import Any

import structlog

from taskflow.core.auth.invites import ensure_redeemable
from taskflow.core.auth.jwt import create_access_token
from taskflow.core.auth.password import dummy_hash, hash_password, verify_password
from taskflow.core.auth.repository import CredentialStore, InviteRegistry
from taskflow.core.auth.tokens import Clock, utc_now
from taskflow.core.auth.types import User, normalize_email
from taskflow.core.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    InviteNotFoundError,
    InviteRequiredError,
)

logger = structlog.get_logger()


def issue_session(user: User) -> dict[str, Any]:
    """Mint a token for ``user`` and pair it with the public user view."""
    token = create_access_token(
        user_id=str(user.id),
        email=user.email,
        role=user.role,
        name=user.name,
    )
    return {"token": token, "user": user.to_public()}


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        users: CredentialStore,
        invites: InviteRegistry,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize with stores.

        Args:
            users: Credential store.
            invites: Invite registry.
            clock: Source of the current time for expiry checks.
        """
        self._users = users
        self._invites = invites
        self._clock = clock

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate user and return a session token.

        Args:
            email: User's email address.
            password: Plain text password.

        Returns:
            Dict with token and the user without its password hash.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password
                is wrong. Both cases are indistinguishable to the caller.
        """
        user = await self._users.get_user_by_email(normalize_email(email))
        if not user:
            # Burn the same bcrypt time as a real check
            verify_password(password, dummy_hash())
            logger.info("login_failed", reason="unknown_email")
            raise InvalidCredentialsError()

        if not verify_password(password, user.password_hash):
            logger.info("login_failed", reason="wrong_password", user_id=str(user.id))
            raise InvalidCredentialsError()

        logger.info("login_succeeded", user_id=str(user.id), role=user.role.value)
        return issue_session(user)

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        invite_code: str | None,
        department: str | None = None,
        position: str | None = None,
    ) -> dict[str, Any]:
        """Register a new user by redeeming an invite code.

        The new account's role is taken from the invite. There is no way to
        choose a role here.

        Args:
            name: Display name.
            email: Email address, used as the login key.
            password: Plain text password.
            invite_code: Redemption code. Required.
            department: Optional department.
            position: Optional position.

        Returns:
            Dict with token and the user without its password hash.

        Raises:
            InviteRequiredError: If no code was given.
            InviteNotFoundError: If the code does not exist.
            InviteAlreadyUsedError: If the code was used or deactivated.
            InviteExpiredError: If the code has expired.
            EmailTakenError: If the email is already registered.
        """
        code = (invite_code or "").strip()
        if not code:
            raise InviteRequiredError()

        invite = await self._invites.get_invite_by_code(code)
        if not invite:
            logger.info("registration_rejected", reason="invite_not_found")
            raise InviteNotFoundError()

        ensure_redeemable(invite, self._clock())

        email = normalize_email(email)
        if await self._users.get_user_by_email(email):
            raise EmailTakenError()

        user = await self._users.create_user(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=invite.role,
            department=department,
            position=position,
        )

        try:
            await self._invites.redeem_invite(code, user.id)
        except Exception as e:
            # Lost a race for the code (or the store failed); undo the account
            # so no user exists without a redeemed invite behind it
            await self._users.delete_user(user.id)
            logger.warning(
                "registration_rolled_back",
                user_id=str(user.id),
                invite_id=str(invite.id),
                reason=type(e).__name__,
            )
            raise

        logger.info(
            "user_registered",
            user_id=str(user.id),
            invite_id=str(invite.id),
            role=user.role.value,
        )
        return issue_session(user)
