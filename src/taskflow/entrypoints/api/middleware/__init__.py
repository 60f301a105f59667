"""API middleware."""

from taskflow.entrypoints.api.middleware.jwt_auth import (
    ACCESS_TOKEN_COOKIE,
    CurrentUser,
    JwtContext,
    RequireAdmin,
    RequireAdminOrManager,
    require_role,
    verify_jwt,
)

__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "JwtContext",
    "verify_jwt",
    "require_role",
    "CurrentUser",
    "RequireAdmin",
    "RequireAdminOrManager",
]
