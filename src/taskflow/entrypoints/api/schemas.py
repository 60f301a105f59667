"""Shared request/response models for the HTTP API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskflow.core.auth.types import Role, User

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PROFILE_FIELD_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 72


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def check_person_name(value: str) -> str:
    """Validate a display name: letters, spaces and hyphens only."""
    value = value.strip()
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        raise ValueError(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    if not all(ch.isalpha() or ch in " -" for ch in value):
        raise ValueError("Name may only contain letters, spaces and hyphens")
    return value


class UserResponse(CamelModel):
    """Public view of a user. Never carries the password hash."""

    id: UUID
    name: str
    email: str
    role: Role
    department: str | None = None
    position: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Build from the domain model."""
        return cls(**user.to_public())


class MessageResponse(CamelModel):
    """Plain acknowledgement."""

    message: str
