# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Message store adapter contract and its PostgreSQL implementation.

The chat core only depends on :class:`MessageStore`. Every operation is a
fallible remote call returning ``Ok``/``Err``; an ``Err`` carries the raw
failure text, which callers log but never forward to clients.
"""

import math
import uuid
from abc import ABC, abstractmethod
from typing import Any

from beartype import beartype

from ..core.database import Database
from ..core.result_types import Err, Ok
from ..models.chat import (
    ChatMessage,
    ChatRoom,
    MessageAuthor,
    MessagePage,
    Pagination,
    RoomCreate,
    RoomSummary,
    RoomUpdate,
)


class MessageStore(ABC):
    """Persistence operations consumed by the chat core and REST routes."""

    async def connect(self) -> None:
        """Open underlying resources."""

    async def close(self) -> None:
        """Release underlying resources."""

    async def health_check(self):
        """Report whether the store can serve requests."""
        return Ok(True)

    # Operations used by the real-time protocol

    @abstractmethod
    async def upsert_room(self, room_id: str):
        """Create the room if absent; return the stored ``ChatRoom``."""

    @abstractmethod
    async def room_exists(self, room_id: str):
        """Return ``Ok(bool)``."""

    @abstractmethod
    async def create_message(self, room_id: str, author: MessageAuthor, text: str):
        """Persist a message and return the stored ``ChatMessage``."""

    @abstractmethod
    async def list_recent_messages(self, room_id: str, limit: int):
        """Return the newest ``limit`` messages, oldest first."""

    # Operations used by the REST surface

    @abstractmethod
    async def create_room(self, data: RoomCreate):
        """Create a room with a server-generated identifier."""

    @abstractmethod
    async def get_room(self, room_id: str):
        """Return ``Ok(ChatRoom)`` or ``Ok(None)``."""

    @abstractmethod
    async def list_rooms(self):
        """Return room summaries, most recently active first."""

    @abstractmethod
    async def update_room(self, room_id: str, data: RoomUpdate):
        """Apply a partial update; ``Ok(None)`` if the room does not exist."""

    @abstractmethod
    async def delete_room(self, room_id: str):
        """Delete a room and its messages; ``Ok(False)`` if it did not exist."""

    @abstractmethod
    async def list_messages(self, room_id: str, page: int, limit: int):
        """Return a ``MessagePage``, newest page first, oldest-first inside."""


_ROOM_COLUMNS = "id, name, description, is_private, created_at, updated_at"

_MESSAGE_SELECT = """
    SELECT m.id, m.room_id, m.user_id, m.text, m.created_at, m.seq,
           COALESCE(u.nickname, m.user_nickname, m.user_id) AS nickname
    FROM chat_messages m
    LEFT JOIN users u ON u.id = m.user_id
"""


@beartype
def build_pagination(page: int, limit: int, total: int) -> Pagination:
    """Pagination block shared by the store implementations."""
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class PostgresMessageStore(MessageStore):
    """Message store backed by PostgreSQL through asyncpg."""

    def __init__(self, db: Database) -> None:
        """Initialize store with a database wrapper."""
        if not db or not hasattr(db, "fetchrow"):
            raise ValueError("Database connection required")
        self._db = db

    async def connect(self) -> None:
        await self._db.connect()

    async def close(self) -> None:
        await self._db.disconnect()

    async def health_check(self):
        return await self._db.health_check()

    @beartype
    async def upsert_room(self, room_id: str):
        """Race-safe create-if-absent keyed by the room id."""
        try:
            async with self._db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO chat_rooms (id, name)
                    VALUES ($1, $2)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    room_id,
                    f"Room {room_id}",
                )
                row = await conn.fetchrow(
                    f"SELECT {_ROOM_COLUMNS} FROM chat_rooms WHERE id = $1",
                    room_id,
                )
            return Ok(self._row_to_room(row))
        except Exception as e:
            return Err(f"Database error upserting room {room_id}: {str(e)}")

    @beartype
    async def room_exists(self, room_id: str):
        try:
            exists = await self._db.fetchval(
                "SELECT EXISTS(SELECT 1 FROM chat_rooms WHERE id = $1)", room_id
            )
            return Ok(bool(exists))
        except Exception as e:
            return Err(f"Database error checking room {room_id}: {str(e)}")

    @beartype
    async def create_message(self, room_id: str, author: MessageAuthor, text: str):
        """Insert the message and bump the room's activity timestamp."""
        try:
            async with self._db.transaction() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO chat_messages (id, room_id, user_id, user_nickname, text)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING id, room_id, user_id, text, created_at, seq
                    """,
                    uuid.uuid4(),
                    room_id,
                    author.id,
                    author.nickname,
                    text,
                )
                await conn.execute(
                    "UPDATE chat_rooms SET updated_at = now() WHERE id = $1", room_id
                )
            if not row:
                return Err("Failed to create message")
            return Ok(self._row_to_message(row, nickname=author.nickname))
        except Exception as e:
            return Err(f"Database error creating message in {room_id}: {str(e)}")

    @beartype
    async def list_recent_messages(self, room_id: str, limit: int):
        try:
            rows = await self._db.fetch(
                _MESSAGE_SELECT
                + """
                WHERE m.room_id = $1
                ORDER BY m.created_at DESC, m.seq DESC
                LIMIT $2
                """,
                room_id,
                limit,
            )
        except Exception as e:
            return Err(f"Database error listing messages in {room_id}: {str(e)}")

        messages = [self._row_to_message(row) for row in rows]
        messages.reverse()
        return Ok(messages)

    @beartype
    async def create_room(self, data: RoomCreate):
        try:
            row = await self._db.fetchrow(
                f"""
                INSERT INTO chat_rooms (id, name, description, is_private)
                VALUES ($1, $2, $3, $4)
                RETURNING {_ROOM_COLUMNS}
                """,
                str(uuid.uuid4()),
                data.name.strip(),
                data.description,
                data.is_private,
            )
            if not row:
                return Err("Failed to create room")
            return Ok(self._row_to_room(row))
        except Exception as e:
            return Err(f"Database error creating room: {str(e)}")

    @beartype
    async def get_room(self, room_id: str):
        try:
            row = await self._db.fetchrow(
                f"SELECT {_ROOM_COLUMNS} FROM chat_rooms WHERE id = $1", room_id
            )
        except Exception as e:
            return Err(f"Database error loading room {room_id}: {str(e)}")
        return Ok(self._row_to_room(row) if row else None)

    @beartype
    async def list_rooms(self):
        try:
            rows = await self._db.fetch(
                """
                SELECT r.id, r.name, r.description, r.is_private,
                       r.created_at, r.updated_at,
                       (SELECT count(*) FROM chat_messages c WHERE c.room_id = r.id)
                           AS message_count,
                       lm.id AS last_id, lm.user_id AS last_user_id,
                       lm.text AS last_text, lm.created_at AS last_created_at,
                       lm.seq AS last_seq, lm.nickname AS last_nickname
                FROM chat_rooms r
                LEFT JOIN LATERAL (
                    SELECT m.id, m.user_id, m.text, m.created_at, m.seq,
                           COALESCE(u.nickname, m.user_nickname, m.user_id) AS nickname
                    FROM chat_messages m
                    LEFT JOIN users u ON u.id = m.user_id
                    WHERE m.room_id = r.id
                    ORDER BY m.created_at DESC, m.seq DESC
                    LIMIT 1
                ) lm ON TRUE
                ORDER BY r.updated_at DESC
                """
            )
        except Exception as e:
            return Err(f"Database error listing rooms: {str(e)}")

        summaries = []
        for row in rows:
            last_message = None
            if row["last_id"] is not None:
                last_message = ChatMessage(
                    id=row["last_id"],
                    room_id=row["id"],
                    text=row["last_text"],
                    created_at=row["last_created_at"],
                    seq=row["last_seq"],
                    user=MessageAuthor(
                        id=row["last_user_id"], nickname=row["last_nickname"]
                    ),
                )
            summaries.append(
                RoomSummary(
                    **self._row_to_room(row).model_dump(),
                    last_message=last_message,
                    message_count=row["message_count"],
                )
            )
        return Ok(summaries)

    @beartype
    async def update_room(self, room_id: str, data: RoomUpdate):
        changes: dict[str, Any] = {
            name: getattr(data, name) for name in sorted(data.model_fields_set)
        }
        if "name" in changes and changes["name"] is not None:
            changes["name"] = changes["name"].strip()

        assignments = [f"{column} = ${index}" for index, column in enumerate(changes, start=2)]
        assignments.append("updated_at = now()")

        try:
            row = await self._db.fetchrow(
                f"""
                UPDATE chat_rooms SET {", ".join(assignments)}
                WHERE id = $1
                RETURNING {_ROOM_COLUMNS}
                """,  # nosec B608 - column names come from RoomUpdate fields
                room_id,
                *changes.values(),
            )
        except Exception as e:
            return Err(f"Database error updating room {room_id}: {str(e)}")
        return Ok(self._row_to_room(row) if row else None)

    @beartype
    async def delete_room(self, room_id: str):
        try:
            status = await self._db.execute("DELETE FROM chat_rooms WHERE id = $1", room_id)
        except Exception as e:
            return Err(f"Database error deleting room {room_id}: {str(e)}")
        return Ok(status.endswith(" 1"))

    @beartype
    async def list_messages(self, room_id: str, page: int, limit: int):
        try:
            total = await self._db.fetchval(
                "SELECT count(*) FROM chat_messages WHERE room_id = $1", room_id
            )
            rows = await self._db.fetch(
                _MESSAGE_SELECT
                + """
                WHERE m.room_id = $1
                ORDER BY m.created_at DESC, m.seq DESC
                LIMIT $2 OFFSET $3
                """,
                room_id,
                limit,
                (page - 1) * limit,
            )
        except Exception as e:
            return Err(f"Database error paging messages in {room_id}: {str(e)}")

        messages = [self._row_to_message(row) for row in rows]
        messages.reverse()
        return Ok(
            MessagePage(
                messages=messages,
                pagination=build_pagination(page, limit, int(total or 0)),
            )
        )

    @staticmethod
    def _row_to_room(row: Any) -> ChatRoom:
        return ChatRoom(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            is_private=row["is_private"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_message(row: Any, nickname: str | None = None) -> ChatMessage:
        return ChatMessage(
            id=row["id"],
            room_id=row["room_id"],
            text=row["text"],
            created_at=row["created_at"],
            seq=row["seq"],
            user=MessageAuthor(
                id=row["user_id"],
                nickname=nickname if nickname is not None else row["nickname"],
            ),
        )
