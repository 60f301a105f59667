"""Core domain - business rules for identity, invites and access control."""

from .exceptions import (
    AuthError,
    ConfigurationError,
    EmailTakenError,
    ErrorCode,
    InvalidCredentialsError,
    InvalidRoleError,
    InviteAlreadyUsedError,
    InviteError,
    InviteExpiredError,
    InviteNotFoundError,
    InviteRedeemedError,
    InviteRequiredError,
    PermissionDeniedError,
    TaskflowError,
    TokenError,
    TokenInvalidError,
    TokenMissingError,
    UserNotFoundError,
    ValidationError,
)

__all__ = [
    "ErrorCode",
    "TaskflowError",
    "ValidationError",
    "ConfigurationError",
    "AuthError",
    "InvalidCredentialsError",
    "TokenError",
    "TokenMissingError",
    "TokenInvalidError",
    "PermissionDeniedError",
    "InviteError",
    "InviteRequiredError",
    "InviteNotFoundError",
    "InviteAlreadyUsedError",
    "InviteExpiredError",
    "InviteRedeemedError",
    "InvalidRoleError",
    "EmailTakenError",
    "UserNotFoundError",
]
