"""User management routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field, field_validator

from taskflow.core.auth.users import UserService
from taskflow.entrypoints.api.deps import get_user_service
from taskflow.entrypoints.api.middleware.jwt_auth import RequireAdmin, RequireAdminOrManager
from taskflow.entrypoints.api.schemas import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    PROFILE_FIELD_MAX_LENGTH,
    CamelModel,
    MessageResponse,
    UserResponse,
    check_person_name,
)

router = APIRouter(prefix="/users", tags=["users"])

UserServiceDep = Annotated[UserService, Depends(get_user_service)]


class CreateUserRequest(CamelModel):
    """Request to create a user directly."""

    name: str
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    role: str
    department: str | None = Field(None, max_length=PROFILE_FIELD_MAX_LENGTH)
    position: str | None = Field(None, max_length=PROFILE_FIELD_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return check_person_name(value)


class UpdateUserRequest(CamelModel):
    """Request to update a user. Omitted fields are left unchanged."""

    name: str | None = None
    email: EmailStr | None = None
    role: str | None = None
    department: str | None = Field(None, max_length=PROFILE_FIELD_MAX_LENGTH)
    position: str | None = Field(None, max_length=PROFILE_FIELD_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str | None) -> str | None:
        return check_person_name(value) if value is not None else None


@router.get("", response_model=list[UserResponse])
async def list_users(
    auth: RequireAdminOrManager,
    service: UserServiceDep,
) -> list[UserResponse]:
    """List all users."""
    return [UserResponse.from_user(u) for u in await service.list_users()]


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: CreateUserRequest,
    auth: RequireAdmin,
    service: UserServiceDep,
) -> UserResponse:
    """Create a user with an explicit role, bypassing invites."""
    user = await service.create_user(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        department=body.department,
        position=body.position,
        created_by=auth.user_uuid,
    )
    return UserResponse.from_user(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    body: UpdateUserRequest,
    auth: RequireAdmin,
    service: UserServiceDep,
) -> UserResponse:
    """Update a user's profile or role.

    A role change takes effect for that user's next token; tokens already
    issued keep the old role until they expire.
    """
    user = await service.update_user(
        user_id,
        name=body.name,
        email=body.email,
        role=body.role,
        department=body.department,
        position=body.position,
        updated_by=auth.user_uuid,
    )
    return UserResponse.from_user(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    auth: RequireAdmin,
    service: UserServiceDep,
) -> MessageResponse:
    """Delete a user."""
    await service.delete_user(user_id, deleted_by=auth.user_uuid)
    return MessageResponse(message="User deleted")
