# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Chat protocol state machine.

Each inbound frame is dispatched to one handler method. Handler methods
return ``Ok``/``Err``; :meth:`ChatProtocolHandler.handle` turns every
``Err`` into an ``error`` event for the originating session only.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from beartype import beartype

from ...core.errors import ChatError, ChatErrorKind
from ...core.result_types import Err, Ok
from ...core.security import TokenVerifier
from ...models.chat import MessageAuthor
from ...services.message_store import MessageStore
from ..message_models import (
    INBOUND_EVENTS,
    ChatEvent,
    parse_ping_payload,
    parse_room_payload,
    parse_send_message_payload,
)
from ..registry import RoomRegistry
from ..session import ConnectionSession

logger = logging.getLogger(__name__)

_UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class ChatProtocolHandler:
    """Handle authenticated chat sessions."""

    def __init__(
        self,
        verifier: TokenVerifier,
        store: MessageStore,
        registry: RoomRegistry,
        *,
        replay_window: int = 50,
        max_message_length: int = 2000,
        outbox_size: int = 256,
        announce_departures: bool = False,
    ) -> None:
        self._verifier = verifier
        self._store = store
        self._registry = registry
        self._replay_window = replay_window
        self._max_message_length = max_message_length
        self._outbox_size = outbox_size
        self._announce_departures = announce_departures

        self._dispatch: dict[str, Callable[[ConnectionSession, Any], Awaitable[Any]]] = {
            ChatEvent.JOIN_ROOM.value: self._on_join_room,
            ChatEvent.LEAVE_ROOM.value: self._on_leave_room,
            ChatEvent.SEND_MESSAGE.value: self._on_send_message,
            ChatEvent.TYPING_START.value: self._on_typing_start,
            ChatEvent.TYPING_STOP.value: self._on_typing_stop,
            ChatEvent.PING.value: self._on_ping,
        }

    @beartype
    def authenticate(self, credential: str | None):
        """Verify the handshake credential and open a session."""
        verified = self._verifier.verify(credential)
        if verified.is_err():
            error = verified.unwrap_err()
            logger.warning(
                "Rejected chat handshake (%s): %s", error.reason, error.detail or error.message
            )
            return verified

        session = ConnectionSession(verified.unwrap(), outbox_size=self._outbox_size)
        logger.info("Session %s opened for user %s", session.session_id, session.user_id)
        return Ok(session)

    @beartype
    async def handle(self, session: ConnectionSession, frame: Any):
        """Process one inbound frame for the session."""
        try:
            result = await self._route(session, frame)
        except Exception:
            logger.exception("Unhandled error processing frame for session %s", session.session_id)
            session.enqueue(ChatEvent.ERROR, {"message": _UNEXPECTED_ERROR_MESSAGE})
            return Err(_UNEXPECTED_ERROR_MESSAGE)

        if result.is_err():
            error = result.unwrap_err()
            if error.kind == ChatErrorKind.PERSISTENCE_ERROR:
                logger.error(
                    "Persistence failure for session %s: %s", session.session_id, error.detail
                )
            else:
                logger.debug("Rejected frame from session %s: %s", session.session_id, error.message)
            session.send_error(error)
        return result

    @beartype
    async def join_room(self, session: ConnectionSession, room_id: str):
        room_id = room_id.strip()
        if not room_id:
            return Err(ChatError.validation("Room id is required"))

        joined = await self._registry.join(room_id, session)
        if joined.is_err():
            return joined
        membership = joined.unwrap()

        history = await self._store.list_recent_messages(room_id, self._replay_window)
        if history.is_err():
            if membership.newly_joined:
                self._registry.leave(room_id, session)
            return Err(
                ChatError.persistence(
                    "Could not load room history, please try again",
                    detail=history.unwrap_err(),
                )
            )

        session.enqueue(
            ChatEvent.ROOM_JOINED,
            {
                "roomId": room_id,
                "messages": [message.to_wire() for message in history.unwrap()],
            },
        )
        if membership.newly_joined:
            self._registry.broadcast(
                room_id,
                ChatEvent.USER_JOINED,
                {
                    "roomId": room_id,
                    "userId": session.user_id,
                    "nickname": session.nickname,
                },
                exclude=session,
            )
        return Ok(membership)

    @beartype
    async def leave_room(self, session: ConnectionSession, room_id: str):
        room_id = room_id.strip()
        if not room_id:
            return Err(ChatError.validation("Room id is required"))

        was_member = self._registry.is_member(room_id, session)
        self._registry.leave(room_id, session)
        if was_member and self._announce_departures:
            self._announce_departure(room_id, session)
        return Ok(was_member)

    @beartype
    async def send_message(self, session: ConnectionSession, room_id: str, text: str):
        room_id = room_id.strip()
        if not self._registry.is_member(room_id, session):
            return Err(ChatError.not_in_room(room_id))

        author = MessageAuthor(id=session.user_id, nickname=session.nickname)
        return await self.publish_message(room_id, author, text)

    @beartype
    async def publish_message(self, room_id: str, author: MessageAuthor, text: str):
        """Validate, persist and fan out a message to every member of the room.

        Shared by socket sends and REST posts; membership is the caller's concern.
        """
        body = text.strip()
        if not body:
            return Err(ChatError.invalid_message("Message text cannot be empty"))
        if len(body) > self._max_message_length:
            return Err(
                ChatError.invalid_message(
                    f"Message text exceeds {self._max_message_length} characters"
                )
            )

        created = await self._store.create_message(room_id, author, body)
        if created.is_err():
            return Err(
                ChatError.persistence(
                    "Failed to send message, please try again",
                    detail=created.unwrap_err(),
                )
            )

        message = created.unwrap()
        self._registry.broadcast(room_id, ChatEvent.NEW_MESSAGE, message.to_wire())
        return Ok(message)

    @beartype
    async def typing_start(self, session: ConnectionSession, room_id: str):
        room_id = room_id.strip()
        if not self._registry.is_member(room_id, session):
            return Ok(0)
        return Ok(
            self._registry.broadcast(
                room_id,
                ChatEvent.USER_TYPING,
                {"roomId": room_id, "userId": session.user_id, "nickname": session.nickname},
                exclude=session,
            )
        )

    @beartype
    async def typing_stop(self, session: ConnectionSession, room_id: str):
        room_id = room_id.strip()
        if not self._registry.is_member(room_id, session):
            return Ok(0)
        return Ok(
            self._registry.broadcast(
                room_id,
                ChatEvent.USER_STOP_TYPING,
                {"roomId": room_id, "userId": session.user_id},
                exclude=session,
            )
        )

    @beartype
    async def ping(self, session: ConnectionSession, client_time: Any = None):
        payload: dict[str, Any] = {"serverTime": datetime.now(timezone.utc).isoformat()}
        if client_time is not None:
            payload["clientTime"] = client_time
        return Ok(session.enqueue(ChatEvent.PONG, payload).unwrap_or(0))

    @beartype
    def disconnect(self, session: ConnectionSession) -> list[str]:
        """Release every membership and close the session. Idempotent."""
        if session.is_closed:
            return []

        rooms = self._registry.leave_all(session)
        session.close()
        if self._announce_departures:
            for room_id in rooms:
                self._announce_departure(room_id, session)

        logger.info(
            "Session %s for user %s disconnected (rooms released: %d)",
            session.session_id,
            session.user_id,
            len(rooms),
        )
        return rooms

    def _announce_departure(self, room_id: str, session: ConnectionSession) -> None:
        self._registry.broadcast(
            room_id,
            ChatEvent.USER_LEFT,
            {"roomId": room_id, "userId": session.user_id, "nickname": session.nickname},
            exclude=session,
        )

    async def _route(self, session: ConnectionSession, frame: Any):
        if session.is_closed:
            return Err(ChatError.validation("Session is closed"))
        if not isinstance(frame, dict):
            return Err(ChatError.validation("Frame must be a JSON object with a 'type' field"))

        event_type = frame.get("type")
        handler = self._dispatch.get(event_type) if isinstance(event_type, str) else None
        if handler is None:
            supported = ", ".join(event.value for event in INBOUND_EVENTS)
            return Err(
                ChatError.validation(
                    f"Unsupported event type '{event_type}'. Supported types: {supported}"
                )
            )
        return await handler(session, frame.get("data"))

    async def _on_join_room(self, session: ConnectionSession, data: Any):
        parsed = parse_room_payload(data)
        if parsed.is_err():
            return parsed
        return await self.join_room(session, parsed.unwrap().room_id)

    async def _on_leave_room(self, session: ConnectionSession, data: Any):
        parsed = parse_room_payload(data)
        if parsed.is_err():
            return parsed
        return await self.leave_room(session, parsed.unwrap().room_id)

    async def _on_send_message(self, session: ConnectionSession, data: Any):
        parsed = parse_send_message_payload(data)
        if parsed.is_err():
            return parsed
        payload = parsed.unwrap()
        return await self.send_message(session, payload.room_id, payload.text)

    async def _on_typing_start(self, session: ConnectionSession, data: Any):
        parsed = parse_room_payload(data)
        if parsed.is_err():
            # Typing hints are best effort.
            return Ok(0)
        return await self.typing_start(session, parsed.unwrap().room_id)

    async def _on_typing_stop(self, session: ConnectionSession, data: Any):
        parsed = parse_room_payload(data)
        if parsed.is_err():
            return Ok(0)
        return await self.typing_stop(session, parsed.unwrap().room_id)

    async def _on_ping(self, session: ConnectionSession, data: Any):
        return await self.ping(session, parse_ping_payload(data).unwrap().client_time)
