"""Auth API routes for login, invite-gated registration, and token checks."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response
from pydantic import EmailStr, Field, field_validator

from taskflow.core.auth.jwt import ACCESS_TOKEN_EXPIRE_HOURS
from taskflow.core.auth.service import AuthService
from taskflow.entrypoints.api.deps import Settings, get_auth_service, get_settings
from taskflow.entrypoints.api.middleware.jwt_auth import ACCESS_TOKEN_COOKIE, CurrentUser
from taskflow.entrypoints.api.schemas import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    PROFILE_FIELD_MAX_LENGTH,
    CamelModel,
    MessageResponse,
    UserResponse,
    check_person_name,
)

router = APIRouter(prefix="/auth", tags=["auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


# Request/Response models
class LoginRequest(CamelModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class RegisterRequest(CamelModel):
    """Registration request body.

    Has no role field; the role comes from the invite.
    """

    name: str
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    invite_code: str | None = None
    department: str | None = Field(None, max_length=PROFILE_FIELD_MAX_LENGTH)
    position: str | None = Field(None, max_length=PROFILE_FIELD_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return check_person_name(value)


class TokenResponse(CamelModel):
    """Session token plus the authenticated user."""

    token: str
    user: UserResponse


class VerifyResponse(CamelModel):
    """Result of a token check."""

    valid: bool
    user: dict[str, Any]


def _session_response(result: dict[str, Any]) -> TokenResponse:
    return TokenResponse(token=result["token"], user=UserResponse(**result["user"]))


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=token,
        max_age=ACCESS_TOKEN_EXPIRE_HOURS * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
) -> TokenResponse:
    """Authenticate user and return a session token.

    Args:
        body: Login credentials.
        response: Outgoing response, receives the session cookie.
        service: Auth service.
        settings: Application settings.

    Returns:
        Token and user info.
    """
    result = await service.login(email=body.email, password=body.password)
    _set_session_cookie(response, result["token"], settings)
    return _session_response(result)


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
) -> TokenResponse:
    """Register a new user by redeeming an invite code.

    Args:
        body: Registration info including the invite code.
        response: Outgoing response, receives the session cookie.
        service: Auth service.
        settings: Application settings.

    Returns:
        Token and the new user, whose role is the invite's role.
    """
    result = await service.register(
        name=body.name,
        email=body.email,
        password=body.password,
        invite_code=body.invite_code,
        department=body.department,
        position=body.position,
    )
    _set_session_cookie(response, result["token"], settings)
    return _session_response(result)


@router.post("/verify", response_model=VerifyResponse)
async def verify(auth: CurrentUser) -> VerifyResponse:
    """Confirm the presented token and echo its identity claims."""
    return VerifyResponse(valid=True, user=auth.to_claims())


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, settings: SettingsDep) -> MessageResponse:
    """Clear the session cookie.

    Tokens are stateless, so a copied bearer token stays valid until expiry.
    """
    response.delete_cookie(
        key=ACCESS_TOKEN_COOKIE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return MessageResponse(message="Logged out")
