"""Domain-specific exceptions.

All exceptions raised by taskflow inherit from TaskflowError and carry a
standardized ErrorCode. The HTTP layer maps codes to status codes; the core
never deals in HTTP.

Messages are user-facing. They must never reveal whether an email is
registered or include stack traces, hashes, or tokens.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Input errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ROLE = "INVALID_ROLE"

    # Authentication errors
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_INVALID = "TOKEN_INVALID"

    # Authorization errors
    FORBIDDEN = "FORBIDDEN"

    # Invite lifecycle errors
    INVITE_REQUIRED = "INVITE_REQUIRED"
    INVITE_NOT_FOUND = "INVITE_NOT_FOUND"
    INVITE_ALREADY_USED = "INVITE_ALREADY_USED"
    INVITE_EXPIRED = "INVITE_EXPIRED"
    INVITE_REDEEMED = "INVITE_REDEEMED"

    # Conflict / lookup errors
    EMAIL_TAKEN = "EMAIL_TAKEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Internal errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TaskflowError(Exception):
    """Base exception for all taskflow errors.

    Attributes:
        code: Standardized error code.
        message: Human-readable, client-safe error message.
        details: Additional error details safe to return to the caller.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Overrides the class default message.
            details: Extra context for the API response.
        """
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API response."""
        body: dict[str, Any] = {"message": self.message, "code": self.code.value}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(TaskflowError):
    """Input failed a domain-level validation rule."""

    code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation failed"


class ConfigurationError(TaskflowError):
    """The service is misconfigured and must not start."""

    code = ErrorCode.CONFIGURATION_ERROR
    default_message = "Invalid configuration"


# Authentication


class AuthError(TaskflowError):
    """Raised when authentication fails."""

    code = ErrorCode.INVALID_CREDENTIALS
    default_message = "Authentication failed"


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password.

    Both cases share one message so the response does not reveal which
    emails are registered.
    """

    default_message = "Invalid email or password"


class TokenError(TaskflowError):
    """Raised when token validation fails."""

    code = ErrorCode.TOKEN_INVALID
    default_message = "Invalid token"


class TokenMissingError(TokenError):
    """No token was presented."""

    code = ErrorCode.TOKEN_MISSING
    default_message = "Missing authentication token"


class TokenInvalidError(TokenError):
    """Token signature, structure, or expiry check failed."""

    default_message = "Invalid or expired token"


# Authorization


class PermissionDeniedError(TaskflowError):
    """Authenticated identity lacks the role required for the operation."""

    code = ErrorCode.FORBIDDEN
    default_message = "Insufficient permissions"


# Invites


class InviteError(TaskflowError):
    """Base for invite lifecycle errors."""


class InviteRequiredError(InviteError):
    """Registration was attempted without an invite code."""

    code = ErrorCode.INVITE_REQUIRED
    default_message = "An invite code is required to register. Contact an administrator."


class InviteNotFoundError(InviteError):
    """No invite matches the given code or id."""

    code = ErrorCode.INVITE_NOT_FOUND
    default_message = "Invite code not found"


class InviteAlreadyUsedError(InviteError):
    """The invite was redeemed or deactivated and can no longer be used."""

    code = ErrorCode.INVITE_ALREADY_USED
    default_message = "This invite code has already been used"


class InviteExpiredError(InviteError):
    """The invite passed its expiry time."""

    code = ErrorCode.INVITE_EXPIRED
    default_message = "This invite code has expired"


class InviteRedeemedError(InviteError):
    """A redeemed invite cannot be deleted; it is kept as an audit record."""

    code = ErrorCode.INVITE_REDEEMED
    default_message = "A redeemed invite code cannot be deleted"


class InvalidRoleError(InviteError):
    """Role is not one of admin, manager, developer."""

    code = ErrorCode.INVALID_ROLE
    default_message = "Invalid role"


# Users


class EmailTakenError(TaskflowError):
    """A user with this email already exists."""

    code = ErrorCode.EMAIL_TAKEN
    default_message = "A user with this email already exists"


class UserNotFoundError(TaskflowError):
    """No user matches the given id."""

    code = ErrorCode.USER_NOT_FOUND
    default_message = "User not found"
