"""SQLite message store."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import (
    DuplicateEmail,
    Forbidden,
    NotFound,
    NotFoundOrForbidden,
    StoreUnavailable,
    ValidationError,
)
from ..logging_config import get_logger
from ..models import Attachment, Message, MessageKind, MessageStatus, User

logger = get_logger(__name__)

_MESSAGE_COLUMNS = """
    m.id, m.sender_id, m.receiver_id, m.body, m.message_type,
    m.media_url, m.file_size, m.duration, m.status, m.created_at
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ts(value: datetime) -> str:
    # fixed width so lexical order == chronological order
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _row_to_message(row: tuple, sender_name: str | None = None) -> Message:
    kind = MessageKind(row[4])
    attachment = None
    if kind is not MessageKind.TEXT:
        attachment = Attachment(kind=kind, url=row[5] or "", size=row[6], duration=row[7])

    return Message(
        id=row[0],
        sender_id=row[1],
        receiver_id=row[2],
        body=row[3],
        attachment=attachment,
        status=MessageStatus(row[8]),
        created_at=_parse_ts(row[9]),
        sender_name=sender_name,
    )


def _row_to_user(row: tuple) -> User:
    return User(id=row[0], email=row[1], name=row[2], created_at=_parse_ts(row[3]))


class IMessageStore(Protocol):
    """Durable log of messages and per-user deletion markers."""

    async def append(
        self,
        sender_id: int,
        receiver_id: int,
        body: str,
        attachment: Attachment | None = None,
    ) -> Message:
        """Persist a new message with status=sent."""
        ...

    async def history(self, user_a: int, user_b: int) -> list[Message]:
        """Messages between two users as seen by user_a, oldest first."""
        ...

    async def soft_delete(self, message_id: int, user_id: int) -> None:
        """Hide a message from one participant (idempotent)."""
        ...

    async def hard_delete(self, message_id: int, user_id: int) -> Message:
        """Remove a message for both participants. Sender only."""
        ...

    async def update_status(self, message_id: int, status: MessageStatus) -> bool:
        """Advance message status. Returns whether the row changed."""
        ...

    async def get_message(self, message_id: int) -> Message | None:
        """Get a message by ID."""
        ...


class IUserDirectory(Protocol):
    """Read access to user accounts."""

    async def get_user(self, user_id: int) -> User | None:
        """Get a user by ID."""
        ...


class Storage:
    """SQLite storage implementation.

    A single aiosqlite connection is shared by every handler, so each
    public operation holds ``_lock`` and runs as one commit/rollback unit.
    """

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Initialize database and create tables."""
        try:
            self._conn = await aiosqlite.connect(self._db_path)
            await self._conn.execute("PRAGMA foreign_keys = ON")

            schema_path = Path(__file__).parent / "schema.sql"
            with open(schema_path, "r", encoding="utf-8") as f:
                schema_sql = f.read()
            await self._conn.executescript(schema_sql)
            await self._conn.commit()
        except aiosqlite.Error as e:
            raise StoreUnavailable(f"Cannot open database: {e}") from e

        logger.info("Storage opened at %s", self._db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self._conn:
            raise StoreUnavailable("Storage not initialized")

        async with self._lock:
            conn = self._conn
            try:
                yield conn
            except aiosqlite.IntegrityError as e:
                await conn.rollback()
                raise ValidationError("Unknown participant") from e
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error("Database error: %s", e, exc_info=True)
                raise StoreUnavailable("Database unavailable") from e
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()

    # Messages
    async def append(
        self,
        sender_id: int,
        receiver_id: int,
        body: str,
        attachment: Attachment | None = None,
    ) -> Message:
        """Persist a new message with status=sent."""
        if not sender_id or not receiver_id or not body or not body.strip():
            raise ValidationError("Missing required fields")
        if sender_id == receiver_id:
            raise ValidationError("Cannot send a message to yourself")

        kind = attachment.kind if attachment else MessageKind.TEXT
        async with self._transaction() as conn:
            created_at = _now()
            cursor = await conn.execute(
                """
                INSERT INTO messages (
                    sender_id, receiver_id, body, message_type,
                    media_url, file_size, duration, status, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sender_id,
                    receiver_id,
                    body,
                    kind.value,
                    attachment.url if attachment else None,
                    attachment.size if attachment else None,
                    attachment.duration if attachment else None,
                    MessageStatus.SENT.value,
                    _ts(created_at),
                ),
            )
            message_id = cursor.lastrowid

        return Message(
            id=message_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            body=body,
            attachment=attachment,
            status=MessageStatus.SENT,
            created_at=_parse_ts(_ts(created_at)),
        )

    async def history(self, user_a: int, user_b: int) -> list[Message]:
        """Messages between two users as seen by user_a, oldest first.

        Only user_a's own deletion markers are applied.
        """
        async with self._transaction() as conn:
            cursor = await conn.execute(
                f"""
                SELECT {_MESSAGE_COLUMNS}, u.name
                FROM messages m
                LEFT JOIN users u ON u.id = m.sender_id
                WHERE ((m.sender_id = ? AND m.receiver_id = ?)
                    OR (m.sender_id = ? AND m.receiver_id = ?))
                  AND NOT EXISTS (
                    SELECT 1 FROM deleted_messages d
                    WHERE d.message_id = m.id AND d.user_id = ?
                  )
                ORDER BY m.created_at ASC, m.id ASC
                """,
                (user_a, user_b, user_b, user_a, user_a),
            )
            rows = await cursor.fetchall()

        return [_row_to_message(row[:10], sender_name=row[10]) for row in rows]

    async def get_message(self, message_id: int) -> Message | None:
        """Get a message by ID."""
        async with self._transaction() as conn:
            row = await self._fetch_message(conn, message_id)
        return _row_to_message(row) if row else None

    async def soft_delete(self, message_id: int, user_id: int) -> None:
        """Hide a message from one participant (idempotent)."""
        async with self._transaction() as conn:
            row = await self._fetch_message(conn, message_id)
            if not row or user_id not in (row[1], row[2]):
                raise NotFoundOrForbidden(
                    "Message not found or no permission to delete"
                )

            await conn.execute(
                """
                INSERT OR IGNORE INTO deleted_messages (message_id, user_id, deleted_at)
                VALUES (?, ?, ?)
                """,
                (message_id, user_id, _ts(_now())),
            )

    async def hard_delete(self, message_id: int, user_id: int) -> Message:
        """Remove a message and its markers. Returns the deleted message."""
        async with self._transaction() as conn:
            row = await self._fetch_message(conn, message_id)
            if not row:
                raise NotFound("Message not found")
            if row[1] != user_id:
                raise Forbidden("Only message sender can delete for everyone")

            await conn.execute(
                "DELETE FROM deleted_messages WHERE message_id = ?", (message_id,)
            )
            await conn.execute("DELETE FROM messages WHERE id = ?", (message_id,))

        return _row_to_message(row)

    async def update_status(self, message_id: int, status: MessageStatus) -> bool:
        """Advance message status. Returns whether the row changed.

        Missing messages and regressions are logged no-ops.
        """
        async with self._transaction() as conn:
            cursor = await conn.execute(
                "SELECT status FROM messages WHERE id = ?", (message_id,)
            )
            row = await cursor.fetchone()
            if not row:
                logger.warning("Status update for unknown message %s", message_id)
                return False

            current = MessageStatus(row[0])
            if status.rank <= current.rank:
                logger.debug(
                    "Ignoring status %s for message %s (already %s)",
                    status.value,
                    message_id,
                    current.value,
                )
                return False

            await conn.execute(
                "UPDATE messages SET status = ? WHERE id = ?",
                (status.value, message_id),
            )
        return True

    async def _fetch_message(
        self, conn: aiosqlite.Connection, message_id: int
    ) -> tuple | None:
        cursor = await conn.execute(
            f"SELECT {_MESSAGE_COLUMNS} FROM messages m WHERE m.id = ?",
            (message_id,),
        )
        return await cursor.fetchone()

    # Users
    async def create_user(self, email: str, credential: str, name: str) -> User:
        """Create a user account."""
        created_at = _now()
        try:
            async with self._transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO users (email, credential, name, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (email, credential, name, _ts(created_at)),
                )
                user_id = cursor.lastrowid
        except ValidationError as e:
            # users has no foreign keys; the only integrity rule is email UNIQUE
            raise DuplicateEmail("Email already exists") from e

        return User(
            id=user_id,
            email=email,
            name=name,
            created_at=_parse_ts(_ts(created_at)),
        )

    async def get_user(self, user_id: int) -> User | None:
        """Get a user by ID."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                "SELECT id, email, name, created_at FROM users WHERE id = ?",
                (user_id,),
            )
            row = await cursor.fetchone()

        return _row_to_user(row) if row else None

    async def get_user_credentials(self, email: str) -> tuple[User, str] | None:
        """Get a user and its stored credential by email."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                """
                SELECT id, email, name, created_at, credential
                FROM users
                WHERE email = ?
                """,
                (email,),
            )
            row = await cursor.fetchone()

        if not row:
            return None
        return _row_to_user(row[:4]), row[4]

    async def list_users(self) -> list[User]:
        """Get all users ordered by name."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                "SELECT id, email, name, created_at FROM users ORDER BY name, id"
            )
            rows = await cursor.fetchall()

        return [_row_to_user(row) for row in rows]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        async with self._transaction() as conn:
            for table in ["deleted_messages", "messages", "users"]:
                await conn.execute(f"DELETE FROM {table}")
