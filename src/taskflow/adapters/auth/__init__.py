"""Auth storage adapters."""

from taskflow.adapters.auth.memory import InMemoryAuthRepository
from taskflow.adapters.auth.sqlite import SQLiteAuthRepository
from taskflow.core.auth.tokens import Clock, utc_now
from taskflow.core.exceptions import ConfigurationError

AuthRepository = InMemoryAuthRepository | SQLiteAuthRepository


def build_auth_repository(database_url: str, clock: Clock = utc_now) -> AuthRepository:
    """Create the store named by ``database_url``.

    Supported forms are ``memory://`` and ``sqlite:///path/to.db``.

    Raises:
        ConfigurationError: If the URL scheme is not supported.
    """
    if database_url in ("memory://", "memory"):
        return InMemoryAuthRepository(clock=clock)
    if database_url.startswith("sqlite:///"):
        path = database_url.removeprefix("sqlite:///")
        if not path:
            raise ConfigurationError("DATABASE_URL is missing a SQLite path")
        return SQLiteAuthRepository(path, clock=clock)
    raise ConfigurationError(f"Unsupported DATABASE_URL scheme: {database_url.split(':', 1)[0]}")


__all__ = [
    "AuthRepository",
    "InMemoryAuthRepository",
    "SQLiteAuthRepository",
    "build_auth_repository",
]
