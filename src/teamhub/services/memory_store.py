# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""In-process message store for development and tests."""

import itertools
import uuid
from datetime import datetime, timezone

from beartype import beartype

from ..core.result_types import Err, Ok
from ..models.chat import (
    ChatMessage,
    ChatRoom,
    MessageAuthor,
    MessagePage,
    RoomCreate,
    RoomSummary,
    RoomUpdate,
)
from .message_store import MessageStore, build_pagination


class InMemoryMessageStore(MessageStore):
    """Dictionary-backed store with the same ordering rules as PostgreSQL.

    Mutations complete without awaiting, so concurrent upserts of the same
    room cannot both insert.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, ChatRoom] = {}
        self._messages: dict[str, list[ChatMessage]] = {}
        self._seq = itertools.count(1)

    @beartype
    async def upsert_room(self, room_id: str):
        room = self._rooms.get(room_id)
        if room is None:
            now = datetime.now(timezone.utc)
            room = ChatRoom(
                id=room_id, name=f"Room {room_id}", created_at=now, updated_at=now
            )
            self._rooms[room_id] = room
            self._messages[room_id] = []
        return Ok(room)

    @beartype
    async def room_exists(self, room_id: str):
        return Ok(room_id in self._rooms)

    @beartype
    async def create_message(self, room_id: str, author: MessageAuthor, text: str):
        if room_id not in self._rooms:
            return Err(f"Room {room_id} does not exist")

        message = ChatMessage(
            id=uuid.uuid4(),
            room_id=room_id,
            text=text,
            created_at=datetime.now(timezone.utc),
            user=author,
            seq=next(self._seq),
        )
        self._messages[room_id].append(message)
        self._rooms[room_id] = self._rooms[room_id].model_copy(
            update={"updated_at": message.created_at}
        )
        return Ok(message)

    @beartype
    async def list_recent_messages(self, room_id: str, limit: int):
        ordered = self._ordered(room_id)
        return Ok(ordered[-limit:] if limit > 0 else [])

    @beartype
    async def create_room(self, data: RoomCreate):
        now = datetime.now(timezone.utc)
        room = ChatRoom(
            id=str(uuid.uuid4()),
            name=data.name.strip(),
            description=data.description,
            is_private=data.is_private,
            created_at=now,
            updated_at=now,
        )
        self._rooms[room.id] = room
        self._messages[room.id] = []
        return Ok(room)

    @beartype
    async def get_room(self, room_id: str):
        return Ok(self._rooms.get(room_id))

    @beartype
    async def list_rooms(self):
        summaries = []
        for room in self._rooms.values():
            ordered = self._ordered(room.id)
            summaries.append(
                RoomSummary(
                    **room.model_dump(),
                    last_message=ordered[-1] if ordered else None,
                    message_count=len(ordered),
                )
            )
        summaries.sort(key=lambda summary: summary.updated_at, reverse=True)
        return Ok(summaries)

    @beartype
    async def update_room(self, room_id: str, data: RoomUpdate):
        room = self._rooms.get(room_id)
        if room is None:
            return Ok(None)

        changes = {name: getattr(data, name) for name in data.model_fields_set}
        if changes.get("name") is not None:
            changes["name"] = changes["name"].strip()
        changes["updated_at"] = datetime.now(timezone.utc)

        updated = room.model_copy(update=changes)
        self._rooms[room_id] = updated
        return Ok(updated)

    @beartype
    async def delete_room(self, room_id: str):
        if room_id not in self._rooms:
            return Ok(False)
        del self._rooms[room_id]
        self._messages.pop(room_id, None)
        return Ok(True)

    @beartype
    async def list_messages(self, room_id: str, page: int, limit: int):
        ordered = self._ordered(room_id)
        total = len(ordered)
        # Page 1 holds the newest messages.
        end = max(total - (page - 1) * limit, 0)
        start = max(end - limit, 0)
        return Ok(
            MessagePage(
                messages=ordered[start:end],
                pagination=build_pagination(page, limit, total),
            )
        )

    def _ordered(self, room_id: str) -> list[ChatMessage]:
        return sorted(
            self._messages.get(room_id, []),
            key=lambda message: (message.created_at, message.seq),
        )
