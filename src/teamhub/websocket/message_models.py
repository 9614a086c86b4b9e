# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Message models and payload parsing for the chat socket protocol."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ChatError
from ..core.result_types import Err, Ok


class ChatEvent(str, Enum):
    """Event names carried in the ``type`` field of every frame."""

    # Client -> server
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    SEND_MESSAGE = "send_message"
    TYPING_START = "typing_start"
    TYPING_STOP = "typing_stop"
    PING = "ping"

    # Server -> client
    CONNECTED = "connected"
    ROOM_JOINED = "room_joined"
    USER_JOINED = "user_joined"
    USER_LEFT = "user_left"
    NEW_MESSAGE = "new_message"
    USER_TYPING = "user_typing"
    USER_STOP_TYPING = "user_stop_typing"
    PONG = "pong"
    ERROR = "error"


INBOUND_EVENTS: tuple[ChatEvent, ...] = (
    ChatEvent.JOIN_ROOM,
    ChatEvent.LEAVE_ROOM,
    ChatEvent.SEND_MESSAGE,
    ChatEvent.TYPING_START,
    ChatEvent.TYPING_STOP,
    ChatEvent.PING,
)


class ChatEnvelope(BaseModel):
    """Outbound frame delivered to one session."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

    type: ChatEvent = Field(..., description="Event name")
    data: dict[str, Any] = Field(default_factory=dict, description="Event payload")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Enqueue time",
    )
    sequence: int = Field(..., ge=1, description="Per-session delivery order")

    @beartype
    def to_wire(self) -> dict[str, Any]:
        """JSON-safe frame sent over the socket."""
        return self.model_dump(mode="json")


class InboundPayload(BaseModel):
    """Base for client payloads; unknown keys are ignored."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


class RoomPayload(InboundPayload):
    room_id: str = Field(..., alias="roomId")


class SendMessagePayload(InboundPayload):
    room_id: str = Field(..., alias="roomId")
    text: str = Field(default="")


class PingPayload(InboundPayload):
    client_time: Any = Field(default=None, alias="clientTime")


@beartype
def parse_room_payload(data: Any):
    """Accept a bare room id string or ``{"roomId": ...}``."""
    if isinstance(data, str):
        return Ok(RoomPayload(room_id=data))
    if isinstance(data, dict):
        room_id = data.get("roomId", data.get("room_id"))
        if isinstance(room_id, str):
            return Ok(RoomPayload(room_id=room_id))
    return Err(ChatError.validation("Payload must be a room id or an object with 'roomId'"))


@beartype
def parse_send_message_payload(data: Any):
    """Accept ``{"roomId": ..., "text": ...}``; a missing text counts as empty."""
    if not isinstance(data, dict):
        return Err(ChatError.validation("Payload must be an object with 'roomId' and 'text'"))

    room_id = data.get("roomId", data.get("room_id"))
    text = data.get("text", "")
    if text is None:
        text = ""
    if not isinstance(room_id, str):
        return Err(ChatError.validation("Field 'roomId' must be a string"))
    if not isinstance(text, str):
        return Err(ChatError.validation("Field 'text' must be a string"))
    return Ok(SendMessagePayload(room_id=room_id, text=text))


@beartype
def parse_ping_payload(data: Any):
    if isinstance(data, dict):
        return Ok(PingPayload(client_time=data.get("clientTime")))
    return Ok(PingPayload(client_time=data))
