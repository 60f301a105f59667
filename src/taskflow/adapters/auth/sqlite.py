"""SQLite implementation of CredentialStore and InviteRegistry.

Uses Python's built-in sqlite3 module. Invite redemption is a single
conditional UPDATE keyed on ``used_by IS NULL``, so concurrent redemptions
of one code are decided by the database, even across processes sharing the
file.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

import structlog

from taskflow.core.auth.invites import ensure_redeemable
from taskflow.core.auth.tokens import (
    Clock,
    ensure_utc,
    generate_invite_code,
    get_invite_expiry,
    utc_now,
)
from taskflow.core.auth.types import InviteCode, Role, User
from taskflow.core.exceptions import (
    EmailTakenError,
    InviteAlreadyUsedError,
    InviteNotFoundError,
    InviteRedeemedError,
    UserNotFoundError,
)

logger = structlog.get_logger()

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL,
    department TEXT,
    position TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS invite_codes (
    id TEXT PRIMARY KEY,
    code TEXT NOT NULL UNIQUE,
    role TEXT NOT NULL,
    created_by TEXT,
    created_at TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    used_by TEXT,
    used_at TEXT,
    is_active INTEGER NOT NULL DEFAULT 1
);
"""

# Generated codes collide with negligible probability; retry a few times anyway
MAX_CODE_ATTEMPTS = 5


def _ts(value: datetime) -> str:
    # Fixed-width ISO strings keep lexicographic order equal to time order
    return ensure_utc(value).isoformat(timespec="microseconds")


def _parse_ts(value: str | None) -> datetime | None:
    return ensure_utc(datetime.fromisoformat(value)) if value else None


class SQLiteAuthRepository:
    """SQLite-backed user and invite store."""

    def __init__(self, path: str, clock: Clock = utc_now) -> None:
        """Initialize the repository.

        Args:
            path: Database file path, or ``:memory:``.
            clock: Source of the current time for timestamps and expiry.
        """
        self._path = path
        self._clock = clock
        self._conn: sqlite3.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create tables if needed."""
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.executescript(SCHEMA)
        logger.info("auth_database_connected", path=self._path)

    async def close(self) -> None:
        """Close the database."""
        if self._conn:
            self._conn.close()
            self._conn = None
            logger.info("auth_database_disconnected")

    @property
    def conn(self) -> sqlite3.Connection:
        """Open connection."""
        if self._conn is None:
            raise RuntimeError("Database not connected")
        return self._conn

    def _fetch_one(self, query: str, *args: Any) -> sqlite3.Row | None:
        row: sqlite3.Row | None = self.conn.execute(query, args).fetchone()
        return row

    def _row_to_user(self, row: sqlite3.Row) -> User:
        """Convert database row to User model."""
        return User(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=Role(row["role"]),
            department=row["department"],
            position=row["position"],
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    def _row_to_invite(self, row: sqlite3.Row) -> InviteCode:
        """Convert database row to InviteCode model."""
        return InviteCode(
            id=UUID(row["id"]),
            code=row["code"],
            role=Role(row["role"]),
            created_by=UUID(row["created_by"]) if row["created_by"] else None,
            created_at=_parse_ts(row["created_at"]),
            expires_at=_parse_ts(row["expires_at"]),
            used_by=UUID(row["used_by"]) if row["used_by"] else None,
            used_at=_parse_ts(row["used_at"]),
            is_active=bool(row["is_active"]),
        )

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        row = self._fetch_one("SELECT * FROM users WHERE id = ?", str(user_id))
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        row = self._fetch_one("SELECT * FROM users WHERE email = ?", email)
        return self._row_to_user(row) if row else None

    async def list_users(self) -> list[User]:
        """List all users ordered by name."""
        rows = self.conn.execute("SELECT * FROM users ORDER BY name").fetchall()
        return [self._row_to_user(row) for row in rows]

    async def count_users(self) -> int:
        """Number of stored users."""
        row = self._fetch_one("SELECT COUNT(*) AS count FROM users")
        return int(row["count"]) if row else 0

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: str | None = None,
        position: str | None = None,
    ) -> User:
        """Create a new user."""
        user_id = uuid4()
        now = _ts(self._clock())
        try:
            with self.conn:
                self.conn.execute(
                    """
                    INSERT INTO users
                        (id, name, email, password_hash, role, department, position,
                         created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(user_id),
                        name,
                        email,
                        password_hash,
                        role.value,
                        department,
                        position,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError:
            raise EmailTakenError() from None

        user = await self.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def update_user(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        role: Role | None = None,
        department: str | None = None,
        position: str | None = None,
    ) -> User:
        """Update user fields."""
        fields: dict[str, Any] = {
            "name": name,
            "email": email,
            "role": role.value if role is not None else None,
            "department": department,
            "position": position,
        }
        updates = [f"{column} = ?" for column, value in fields.items() if value is not None]
        params: list[Any] = [value for value in fields.values() if value is not None]

        updates.append("updated_at = ?")
        params.append(_ts(self._clock()))
        params.append(str(user_id))

        try:
            with self.conn:
                cursor = self.conn.execute(
                    f"UPDATE users SET {', '.join(updates)} WHERE id = ?",
                    params,
                )
        except sqlite3.IntegrityError:
            raise EmailTakenError() from None

        if cursor.rowcount == 0:
            raise UserNotFoundError()

        user = await self.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user."""
        with self.conn:
            cursor = self.conn.execute("DELETE FROM users WHERE id = ?", (str(user_id),))
        if cursor.rowcount == 0:
            raise UserNotFoundError()

    # Invite operations
    async def create_invite(
        self,
        role: Role,
        created_by: UUID | None,
        expires_in_days: int,
    ) -> InviteCode:
        """Create an active invite with a fresh random code."""
        now = self._clock()
        invite_id = uuid4()

        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = generate_invite_code(role)
            try:
                with self.conn:
                    self.conn.execute(
                        """
                        INSERT INTO invite_codes
                            (id, code, role, created_by, created_at, expires_at, is_active)
                        VALUES (?, ?, ?, ?, ?, ?, 1)
                        """,
                        (
                            str(invite_id),
                            code,
                            role.value,
                            str(created_by) if created_by else None,
                            _ts(now),
                            _ts(get_invite_expiry(now, expires_in_days)),
                        ),
                    )
                break
            except sqlite3.IntegrityError:
                if attempt == MAX_CODE_ATTEMPTS:
                    raise
                logger.warning("invite_code_collision", attempt=attempt)

        invite = await self.get_invite_by_id(invite_id)
        if invite is None:
            raise InviteNotFoundError()
        return invite

    async def get_invite_by_code(self, code: str) -> InviteCode | None:
        """Get invite by its redemption code."""
        row = self._fetch_one("SELECT * FROM invite_codes WHERE code = ?", code)
        return self._row_to_invite(row) if row else None

    async def get_invite_by_id(self, invite_id: UUID) -> InviteCode | None:
        """Get invite by ID."""
        row = self._fetch_one("SELECT * FROM invite_codes WHERE id = ?", str(invite_id))
        return self._row_to_invite(row) if row else None

    async def list_invites(self) -> list[InviteCode]:
        """List all invites, newest first."""
        rows = self.conn.execute("SELECT * FROM invite_codes ORDER BY created_at DESC").fetchall()
        return [self._row_to_invite(row) for row in rows]

    async def redeem_invite(self, code: str, user_id: UUID) -> InviteCode:
        """Consume an invite for ``user_id`` with a conditional update."""
        now = self._clock()
        with self.conn:
            cursor = self.conn.execute(
                """
                UPDATE invite_codes
                SET used_by = ?, used_at = ?, is_active = 0
                WHERE code = ?
                  AND used_by IS NULL
                  AND is_active = 1
                  AND expires_at >= ?
                """,
                (str(user_id), _ts(now), code, _ts(now)),
            )

        invite = await self.get_invite_by_code(code)
        if invite is None:
            raise InviteNotFoundError()
        if cursor.rowcount == 1:
            return invite

        # The update matched nothing; report why
        ensure_redeemable(invite, now)
        raise InviteAlreadyUsedError()

    async def deactivate_invite(self, invite_id: UUID) -> InviteCode:
        """Set is_active to False. Idempotent."""
        with self.conn:
            self.conn.execute(
                "UPDATE invite_codes SET is_active = 0 WHERE id = ?",
                (str(invite_id),),
            )
        invite = await self.get_invite_by_id(invite_id)
        if invite is None:
            raise InviteNotFoundError()
        return invite

    async def delete_invite(self, invite_id: UUID) -> None:
        """Delete an unredeemed invite."""
        with self.conn:
            cursor = self.conn.execute(
                "DELETE FROM invite_codes WHERE id = ? AND used_by IS NULL",
                (str(invite_id),),
            )
        if cursor.rowcount == 1:
            return

        if await self.get_invite_by_id(invite_id) is None:
            raise InviteNotFoundError()
        raise InviteRedeemedError()
