"""Invite code routes: issue, list, validate, deactivate, delete."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import Field

from taskflow.core.auth.invites import InviteService
from taskflow.core.auth.tokens import DEFAULT_INVITE_EXPIRY_DAYS, MAX_INVITE_EXPIRY_DAYS
from taskflow.core.auth.types import InviteCode, InviteDetails, InviteStatus, Role
from taskflow.core.exceptions import InviteError
from taskflow.entrypoints.api.deps import get_invite_service
from taskflow.entrypoints.api.errors import status_for
from taskflow.entrypoints.api.middleware.jwt_auth import RequireAdmin, RequireAdminOrManager
from taskflow.entrypoints.api.schemas import CamelModel, MessageResponse

router = APIRouter(prefix="/invites", tags=["invites"])

InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]


class CreateInviteRequest(CamelModel):
    """Request to create an invite code."""

    role: str
    expires_in_days: int = Field(DEFAULT_INVITE_EXPIRY_DAYS, ge=0, le=MAX_INVITE_EXPIRY_DAYS)


class InviteResponse(CamelModel):
    """Response for an invite code."""

    id: UUID
    code: str
    role: Role
    created_by: UUID | None = None
    created_at: datetime
    expires_at: datetime
    used_by: UUID | None = None
    used_at: datetime | None = None
    is_active: bool

    @classmethod
    def from_invite(cls, invite: InviteCode) -> InviteResponse:
        """Build from the domain model."""
        return cls(**invite.model_dump())


class InviteDetailsResponse(InviteResponse):
    """Invite with display names and derived status for the admin listing."""

    creator_name: str
    used_by_name: str | None = None
    status: InviteStatus

    @classmethod
    def from_details(cls, details: InviteDetails) -> InviteDetailsResponse:
        """Build from the enriched domain model."""
        return cls(
            **details.invite.model_dump(),
            creator_name=details.creator_name,
            used_by_name=details.used_by_name,
            status=details.status,
        )


class ValidateInviteResponse(CamelModel):
    """Outcome of a public code check."""

    valid: bool
    role: Role | None = None
    expires_at: datetime | None = None
    message: str | None = None


class DeactivateInviteResponse(CamelModel):
    """Response for a deactivated invite."""

    message: str
    invite: InviteResponse


@router.get("", response_model=list[InviteDetailsResponse])
async def list_invites(
    auth: RequireAdminOrManager,
    service: InviteServiceDep,
) -> list[InviteDetailsResponse]:
    """List invite codes, newest first.

    Managers only see invites for roles they may issue themselves.
    """
    details = await service.list_invites(viewer_role=auth.role)
    return [InviteDetailsResponse.from_details(d) for d in details]


@router.post("", response_model=InviteResponse, status_code=201)
async def create_invite(
    body: CreateInviteRequest,
    auth: RequireAdminOrManager,
    service: InviteServiceDep,
) -> InviteResponse:
    """Create an invite code.

    Managers may issue manager and developer invites; only admins may issue
    admin invites.
    """
    invite = await service.create_invite(
        issuer_id=auth.user_uuid,
        issuer_role=auth.role,
        role=body.role,
        expires_in_days=body.expires_in_days,
    )
    return InviteResponse.from_invite(invite)


@router.get(
    "/validate/{code}",
    response_model=ValidateInviteResponse,
    response_model_exclude_none=True,
)
async def validate_invite(
    code: str,
    service: InviteServiceDep,
) -> ValidateInviteResponse | JSONResponse:
    """Check whether a code could be used to register. Public and read-only."""
    try:
        invite = await service.validate_code(code)
    except InviteError as e:
        return JSONResponse(
            status_code=status_for(e),
            content={"valid": False, "message": e.message},
        )
    return ValidateInviteResponse(valid=True, role=invite.role, expires_at=invite.expires_at)


@router.patch("/{invite_id}/deactivate", response_model=DeactivateInviteResponse)
async def deactivate_invite(
    invite_id: UUID,
    auth: RequireAdmin,
    service: InviteServiceDep,
) -> DeactivateInviteResponse:
    """Deactivate an invite so it can no longer be redeemed."""
    invite = await service.deactivate_invite(invite_id)
    return DeactivateInviteResponse(
        message="Invite code deactivated",
        invite=InviteResponse.from_invite(invite),
    )


@router.delete("/{invite_id}", response_model=MessageResponse)
async def delete_invite(
    invite_id: UUID,
    auth: RequireAdmin,
    service: InviteServiceDep,
) -> MessageResponse:
    """Delete an invite that has not been redeemed."""
    await service.delete_invite(invite_id)
    return MessageResponse(message="Invite code deleted")
