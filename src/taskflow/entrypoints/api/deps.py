"""Dependency injection and application lifespan management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Request

from taskflow.adapters.auth import AuthRepository, SQLiteAuthRepository, build_auth_repository
from taskflow.core.auth.invites import InviteService
from taskflow.core.auth.jwt import DEFAULT_SECRET_KEY, SECRET_KEY
from taskflow.core.auth.service import AuthService
from taskflow.core.auth.tokens import Clock, utc_now
from taskflow.core.auth.types import Role
from taskflow.core.auth.users import UserService
from taskflow.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()

MIN_SECRET_KEY_LENGTH = 32


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.environment = os.getenv("TASKFLOW_ENV", "development").lower()
        # Tokens are signed with jwt.SECRET_KEY, read once at import; this copy
        # is only checked by validate()
        self.jwt_secret_key = os.getenv("JWT_SECRET_KEY", DEFAULT_SECRET_KEY)
        self.database_url = os.getenv("DATABASE_URL", "memory://")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Cookie and CORS settings
        self.cookie_secure = _env_flag("COOKIE_SECURE", self.is_production)
        origins = os.getenv("CORS_ALLOWED_ORIGINS", "*")
        self.cors_allowed_origins = [o.strip() for o in origins.split(",") if o.strip()]

        # First admin, created when the store is empty
        self.admin_email = os.getenv("ADMIN_EMAIL", "")
        self.admin_password = os.getenv("ADMIN_PASSWORD", "")
        self.admin_name = os.getenv("ADMIN_NAME", "Administrator")

    @property
    def is_production(self) -> bool:
        """Whether running with production safeguards."""
        return self.environment == "production"

    def validate(self) -> None:
        """Refuse unsafe or inconsistent configuration.

        Raises:
            ConfigurationError: If the configured secret is not the key
                tokens are signed with, or, in production, if it is
                missing, the development default or too short.
        """
        if self.is_production:
            if self.jwt_secret_key == DEFAULT_SECRET_KEY:
                raise ConfigurationError("JWT_SECRET_KEY must be set in production")
            if len(self.jwt_secret_key) < MIN_SECRET_KEY_LENGTH:
                raise ConfigurationError(
                    f"JWT_SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters"
                )
        if self.jwt_secret_key != SECRET_KEY:
            raise ConfigurationError(
                "JWT_SECRET_KEY differs from the signing key loaded at import"
            )


def configure_logging(level: str) -> None:
    """Filter structlog output below ``level``."""
    numeric = logging.getLevelNamesMapping().get(level, logging.INFO)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))


async def bootstrap_admin(repo: AuthRepository, settings: Settings) -> None:
    """Create the first admin so invites can be minted on a fresh store."""
    if not settings.admin_email or not settings.admin_password:
        return
    if await repo.count_users() > 0:
        return

    user = await UserService(repo).create_user(
        name=settings.admin_name,
        email=settings.admin_email,
        password=settings.admin_password,
        role=Role.ADMIN,
    )
    logger.info("admin_bootstrapped", user_id=str(user.id))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Configuration checks
    - Auth store setup
    - First admin bootstrap
    """
    settings: Settings = app.state.settings
    clock: Clock = getattr(app.state, "clock", utc_now)

    configure_logging(settings.log_level)
    settings.validate()

    repo = build_auth_repository(settings.database_url, clock=clock)
    if isinstance(repo, SQLiteAuthRepository):
        await repo.connect()

    await bootstrap_admin(repo, settings)

    app.state.auth_repo = repo
    logger.info(
        "app_started",
        environment=settings.environment,
        store=type(repo).__name__,
    )

    yield

    if isinstance(repo, SQLiteAuthRepository):
        await repo.close()


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_clock(request: Request) -> Clock:
    """Get the clock services use for expiry checks."""
    clock: Clock = getattr(request.app.state, "clock", utc_now)
    return clock


def get_auth_repository(request: Request) -> AuthRepository:
    """Get the user and invite store from app state.

    Args:
        request: The current request.

    Returns:
        The store created during lifespan.
    """
    repo: AuthRepository = request.app.state.auth_repo
    return repo


def get_auth_service(request: Request) -> AuthService:
    """Get auth service from request context."""
    repo = get_auth_repository(request)
    return AuthService(repo, repo, clock=get_clock(request))


def get_invite_service(request: Request) -> InviteService:
    """Get invite service from request context."""
    repo = get_auth_repository(request)
    return InviteService(repo, repo, clock=get_clock(request))


def get_user_service(request: Request) -> UserService:
    """Get user service from request context."""
    return UserService(get_auth_repository(request))
