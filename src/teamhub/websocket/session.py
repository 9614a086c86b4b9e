# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Connection session: one authenticated socket and its outbound queue."""

import asyncio
import itertools
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from beartype import beartype

from ..core.errors import ChatError
from ..core.result_types import Err, Ok
from ..core.security import Identity
from .message_models import ChatEnvelope, ChatEvent


class ConnectionState(str, Enum):
    """Connection state enumeration.

    ``CONNECTING`` covers the socket before its handshake is verified. The
    transport owns that phase; a session object only exists once
    authenticated, so it never holds this state itself.
    """

    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    IDLE = "idle"
    IN_ROOM = "in_room"
    DISCONNECTED = "disconnected"


class ConnectionSession:
    """Live connection bound to one identity.

    Outbound events go through a bounded queue drained by :meth:`pump`, so
    enqueueing never awaits. Sequence numbers are assigned at enqueue time
    and increase by one per delivered event.
    """

    def __init__(
        self,
        identity: Identity,
        *,
        session_id: str | None = None,
        outbox_size: int = 256,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.identity = identity
        self.connected_at = datetime.now(timezone.utc)
        self.state = ConnectionState.AUTHENTICATED
        self._joined_rooms: set[str] = set()
        self._outbox: asyncio.Queue[ChatEnvelope | None] = asyncio.Queue(
            maxsize=outbox_size
        )
        self._sequence = itertools.count(1)

    def __repr__(self) -> str:
        return f"ConnectionSession({self.session_id!r}, user={self.user_id!r})"

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    @property
    def nickname(self) -> str:
        return self.identity.nickname

    @property
    def joined_rooms(self) -> frozenset[str]:
        return frozenset(self._joined_rooms)

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.DISCONNECTED

    @property
    def pending(self) -> int:
        """Number of queued outbound events."""
        return self._outbox.qsize()

    def mark_joined(self, room_id: str) -> None:
        self._joined_rooms.add(room_id)
        self.state = ConnectionState.IN_ROOM

    def mark_left(self, room_id: str) -> None:
        self._joined_rooms.discard(room_id)
        if not self._joined_rooms and not self.is_closed:
            self.state = ConnectionState.IDLE

    @beartype
    def enqueue(self, event: ChatEvent, payload: dict[str, Any]):
        """Queue an event for delivery; ``Err`` if closed or the queue is full."""
        if self.is_closed:
            return Err(f"session {self.session_id} is closed")
        if self._outbox.full():
            return Err(f"session {self.session_id} outbox is full")

        envelope = ChatEnvelope(type=event, data=payload, sequence=next(self._sequence))
        self._outbox.put_nowait(envelope)
        return Ok(envelope.sequence)

    @beartype
    def send_error(self, error: ChatError):
        return self.enqueue(ChatEvent.ERROR, error.to_payload())

    def close(self) -> None:
        """Mark the session disconnected and wake the writer."""
        if self.is_closed:
            return
        self.state = ConnectionState.DISCONNECTED
        self._joined_rooms.clear()
        if not self._outbox.full():
            self._outbox.put_nowait(None)
        # A full queue is never empty, so the writer wakes and sees the state.

    async def pump(self, send: Callable[[dict[str, Any]], Awaitable[None]]) -> None:
        """Write queued events in order until the session closes."""
        while True:
            envelope = await self._outbox.get()
            if envelope is None or self.is_closed:
                return
            await send(envelope.to_wire())

    def drain(self) -> list[ChatEnvelope]:
        """Remove and return every queued event without sending it."""
        envelopes = []
        while not self._outbox.empty():
            envelope = self._outbox.get_nowait()
            if envelope is not None:
                envelopes.append(envelope)
        return envelopes
