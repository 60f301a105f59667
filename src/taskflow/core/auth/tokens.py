"""Invite code generation and expiry helpers."""

import secrets
import string
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from taskflow.core.auth.types import Role

# Code configuration
INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 12  # 36**12, roughly 62 bits of entropy
DEFAULT_INVITE_EXPIRY_DAYS = 30
MAX_INVITE_EXPIRY_DAYS = 3650

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time. The default clock for stores and services."""
    return datetime.now(UTC)


def generate_invite_code(role: Role) -> str:
    """Generate a cryptographically random, human-copyable invite code.

    The role prefix is informational only; the stored role is authoritative.

    Args:
        role: Role the invite grants.

    Returns:
        Code such as ``DEVELOPER-7K2QX9M4B1ZP``.
    """
    random_part = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
    return f"{role.value.upper()}-{random_part}"


def get_invite_expiry(created_at: datetime, days: int = DEFAULT_INVITE_EXPIRY_DAYS) -> datetime:
    """Calculate invite expiry timestamp.

    Args:
        created_at: Invite creation time.
        days: Number of days the invite stays valid.

    Returns:
        Datetime when the invite expires.
    """
    return created_at + timedelta(days=days)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
