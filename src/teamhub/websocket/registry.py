# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""In-memory room membership and fan-out."""

import asyncio
import logging
from typing import Any

from attrs import field, frozen
from beartype import beartype

from ..core.errors import ChatError
from ..core.result_types import Err, Ok
from ..services.message_store import MessageStore
from .message_models import ChatEvent
from .session import ConnectionSession

logger = logging.getLogger(__name__)


@frozen
class Membership:
    """Outcome of a join."""

    room_id: str = field()
    member_count: int = field()
    newly_joined: bool = field()


@frozen
class RegistryStats:
    """Immutable registry snapshot."""

    total_rooms: int = field()
    total_sessions: int = field()
    room_sizes: dict[str, int] = field(factory=dict)
    largest_room: str | None = field(default=None)


class RoomRegistry:
    """Maps room ids to the sessions currently joined to them.

    Membership is only changed by synchronous code. The one await in
    :meth:`join` happens before the session is admitted, so a broadcast
    never observes a half-applied join or leave.
    """

    def __init__(self, store: MessageStore) -> None:
        self._store = store
        self._members: dict[str, dict[str, ConnectionSession]] = {}
        self._known_rooms: set[str] = set()
        self._upsert_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @beartype
    async def join(self, room_id: str, session: ConnectionSession):
        """Ensure the room exists, then add the session. Idempotent."""
        if room_id not in self._known_rooms:
            ensured = await self._ensure_room(room_id)
            if ensured.is_err():
                return ensured

        if session.is_closed:
            return Err(ChatError.validation("Session is closed"))

        members = self._members.setdefault(room_id, {})
        newly_joined = session.session_id not in members
        members[session.session_id] = session
        session.mark_joined(room_id)

        if newly_joined:
            logger.info(
                "Session %s (%s) joined room %s",
                session.session_id,
                session.user_id,
                room_id,
            )
        return Ok(Membership(room_id, len(members), newly_joined))

    @beartype
    def leave(self, room_id: str, session: ConnectionSession) -> int:
        """Remove the session from the room; returns the remaining size."""
        members = self._members.get(room_id)
        session.mark_left(room_id)
        if members is None:
            return 0

        if members.pop(session.session_id, None) is not None:
            logger.info("Session %s left room %s", session.session_id, room_id)
        if not members:
            del self._members[room_id]
            return 0
        return len(members)

    @beartype
    def leave_all(self, session: ConnectionSession) -> list[str]:
        """Remove the session from every room it belongs to."""
        left = []
        for room_id in sorted(session.joined_rooms):
            members = self._members.get(room_id)
            if members is not None and members.pop(session.session_id, None) is not None:
                left.append(room_id)
                if not members:
                    del self._members[room_id]
            session.mark_left(room_id)
        return left

    @beartype
    def broadcast(
        self,
        room_id: str,
        event: ChatEvent,
        payload: dict[str, Any],
        exclude: ConnectionSession | None = None,
    ) -> int:
        """Queue an event for every member of the room; returns the count queued."""
        recipients = list(self._members.get(room_id, {}).values())
        delivered = 0
        for recipient in recipients:
            if exclude is not None and recipient.session_id == exclude.session_id:
                continue
            result = recipient.enqueue(event, payload)
            if result.is_err():
                logger.warning(
                    "Dropped %s for room %s: %s",
                    event.value,
                    room_id,
                    result.unwrap_err(),
                )
                continue
            delivered += 1
        return delivered

    @beartype
    def forget(self, room_id: str) -> int:
        """Drop a deleted room; evicted members get an error event.

        The next join of the same id upserts the room again.
        """
        self._known_rooms.discard(room_id)
        members = self._members.pop(room_id, {})
        notice = ChatError.room_deleted(room_id)
        for session in members.values():
            session.mark_left(room_id)
            session.send_error(notice)
        logger.info("Forgot room %s (evicted %d sessions)", room_id, len(members))
        return len(members)

    @beartype
    def members(self, room_id: str) -> list[ConnectionSession]:
        return list(self._members.get(room_id, {}).values())

    @beartype
    def is_member(self, room_id: str, session: ConnectionSession) -> bool:
        return session.session_id in self._members.get(room_id, {})

    @beartype
    def stats(self) -> RegistryStats:
        room_sizes = {room_id: len(members) for room_id, members in self._members.items()}
        sessions = {
            session_id for members in self._members.values() for session_id in members
        }
        largest = max(room_sizes, key=room_sizes.__getitem__) if room_sizes else None
        return RegistryStats(
            total_rooms=len(room_sizes),
            total_sessions=len(sessions),
            room_sizes=room_sizes,
            largest_room=largest,
        )

    async def _ensure_room(self, room_id: str):
        # Concurrent first joins of one room share a single upsert. The lock is
        # dropped once its last user is done, whatever the outcome.
        lock = self._upsert_locks.setdefault(room_id, asyncio.Lock())
        self._lock_users[room_id] = self._lock_users.get(room_id, 0) + 1
        try:
            async with lock:
                if room_id in self._known_rooms:
                    return Ok(room_id)
                upserted = await self._store.upsert_room(room_id)
                if upserted.is_err():
                    return Err(
                        ChatError.persistence(
                            "Could not join room, please try again",
                            detail=upserted.unwrap_err(),
                        )
                    )
                self._known_rooms.add(room_id)
                return Ok(room_id)
        finally:
            self._lock_users[room_id] -= 1
            if not self._lock_users[room_id]:
                del self._lock_users[room_id]
                del self._upsert_locks[room_id]
