"""JWT authentication middleware."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskflow.core.auth.jwt import decode_token
from taskflow.core.auth.types import Role
from taskflow.core.exceptions import PermissionDeniedError, TokenError, TokenMissingError

logger = structlog.get_logger()

# Use Bearer token authentication, falling back to the session cookie
bearer_scheme = HTTPBearer(auto_error=False)
ACCESS_TOKEN_COOKIE = "access_token"


@dataclass
class JwtContext:
    """Context from a verified JWT token."""

    user_id: str
    email: str
    role: Role
    name: str

    @property
    def user_uuid(self) -> UUID:
        """Get user ID as UUID."""
        return UUID(self.user_id)

    def to_claims(self) -> dict[str, Any]:
        """Identity as returned to clients by the verify endpoint."""
        return {
            "id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "name": self.name,
        }


async def verify_jwt(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> JwtContext:
    """Verify JWT token and return context.

    The token comes from the ``Authorization: Bearer`` header or, when that
    is absent, the ``access_token`` cookie. Role headers sent by the client
    are never consulted.

    Args:
        request: The current request.
        credentials: Bearer token credentials.

    Returns:
        JwtContext with user info.

    Raises:
        TokenMissingError: If no token was presented (401).
        TokenInvalidError: If the token fails verification (403).
    """
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise TokenMissingError()

    try:
        payload = decode_token(token)
    except TokenError as e:
        logger.warning("jwt_validation_failed", reason=e.message, path=request.url.path)
        raise

    context = JwtContext(
        user_id=payload.sub,
        email=payload.email,
        role=payload.role,
        name=payload.name,
    )

    # Store in request state for downstream use
    request.state.user = context

    logger.debug("jwt_verified", user_id=context.user_id, role=context.role.value)

    return context


def require_role(*allowed: Role) -> Callable[..., Any]:
    """Dependency to require one of the given roles.

    Roles are a flat set, not a hierarchy: a route lists every role it
    admits.

    Usage:
        @router.delete("/{id}")
        async def delete_item(
            auth: Annotated[JwtContext, Depends(require_role(Role.ADMIN))],
        ):
            ...

    Args:
        allowed: Roles admitted by the route.

    Returns:
        Dependency function that validates role.
    """
    allowed_roles = frozenset(allowed)

    async def role_checker(
        auth: Annotated[JwtContext, Depends(verify_jwt)],
    ) -> JwtContext:
        if auth.role not in allowed_roles:
            logger.warning(
                "role_check_failed",
                user_id=auth.user_id,
                role=auth.role.value,
                allowed=sorted(r.value for r in allowed_roles),
            )
            raise PermissionDeniedError()
        return auth

    return role_checker


# Common role dependencies for convenience
CurrentUser = Annotated[JwtContext, Depends(verify_jwt)]
RequireAdmin = Annotated[JwtContext, Depends(require_role(Role.ADMIN))]
RequireAdminOrManager = Annotated[JwtContext, Depends(require_role(Role.ADMIN, Role.MANAGER))]
