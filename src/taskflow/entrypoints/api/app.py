"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskflow import __version__
from taskflow.core.auth.tokens import Clock, utc_now

from .deps import Settings, lifespan
from .errors import register_exception_handlers
from .routes import api_router


def create_app(settings: Settings | None = None, clock: Clock = utc_now) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration, read from the environment when omitted.
        clock: Time source for invite expiry checks.

    Returns:
        Configured FastAPI app. The store is created by its lifespan.
    """
    settings = settings or Settings()

    app = FastAPI(
        title="taskflow",
        description="Invite-gated registration, JWT sessions and role-based access control",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,  # Prevent 307 redirects that lose auth headers
    )
    app.state.settings = settings
    app.state.clock = clock

    # Credentialed CORS cannot use a wildcard origin
    wildcard = settings.cors_allowed_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=not wildcard,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
