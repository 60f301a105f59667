"""JWT token creation and validation."""

import os
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import ValidationError as PydanticValidationError

from taskflow.core.auth.types import Role, TokenPayload
from taskflow.core.exceptions import TokenInvalidError

# Configuration
DEFAULT_SECRET_KEY = "dev-secret-change-in-production"
SECRET_KEY = os.environ.get("JWT_SECRET_KEY", DEFAULT_SECRET_KEY)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24

REQUIRED_CLAIMS = ["sub", "email", "role", "name", "exp", "iat"]


def create_access_token(
    user_id: str,
    email: str,
    role: Role | str,
    name: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a session token.

    There is no refresh token; once this expires the user logs in again.

    Args:
        user_id: User identifier
        email: User's email at issuance time
        role: User's role at issuance time
        name: User's display name
        expires_delta: Lifetime override, defaults to 24 hours

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))

    payload = {
        "sub": user_id,
        "email": email,
        "role": Role(role).value,
        "name": name,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
    }

    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Verification is offline: only the signature, structure and expiry are
    checked, no store is consulted.

    Args:
        token: Encoded JWT string

    Returns:
        Decoded token payload

    Raises:
        TokenInvalidError: If token is malformed, tampered with, or expired
    """
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"require": REQUIRED_CLAIMS},
        )
        return TokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            role=payload["role"],
            name=payload["name"],
            exp=payload["exp"],
            iat=payload["iat"],
        )
    except jwt.ExpiredSignatureError:
        raise TokenInvalidError("Token has expired") from None
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {e}") from None
    except PydanticValidationError:
        raise TokenInvalidError("Invalid token: unexpected claims") from None
