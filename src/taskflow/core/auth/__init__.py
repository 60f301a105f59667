"""Auth domain types and utilities."""

from taskflow.core.auth.invites import InviteService, can_issue_invite, parse_role
from taskflow.core.auth.jwt import create_access_token, decode_token
from taskflow.core.auth.password import hash_password, verify_password
from taskflow.core.auth.repository import CredentialStore, InviteRegistry
from taskflow.core.auth.service import AuthService
from taskflow.core.auth.types import (
    InviteCode,
    InviteDetails,
    InviteStatus,
    Role,
    TokenPayload,
    User,
)
from taskflow.core.auth.users import UserService

__all__ = [
    "User",
    "Role",
    "InviteCode",
    "InviteDetails",
    "InviteStatus",
    "TokenPayload",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
    "CredentialStore",
    "InviteRegistry",
    "AuthService",
    "InviteService",
    "UserService",
    "can_issue_invite",
    "parse_role",
]
