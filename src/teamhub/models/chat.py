# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Chat room and chat message domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from .base import BaseModelConfig


class MessageAuthor(BaseModelConfig):
    """Author view embedded in every message."""

    id: str = Field(..., min_length=1, description="Authoring user identifier")
    nickname: str = Field(..., description="Display nickname at send time")


class ChatMessage(BaseModelConfig):
    """Immutable persisted chat message."""

    id: UUID = Field(..., description="Message identifier")
    room_id: str = Field(..., min_length=1, description="Owning room")
    text: str = Field(..., min_length=1, description="Trimmed message body")
    created_at: datetime = Field(..., description="Creation timestamp")
    user: MessageAuthor = Field(..., description="Message author")
    seq: int = Field(
        default=0,
        ge=0,
        exclude=True,
        description="Store insertion order, breaks created_at ties",
    )


class ChatRoom(BaseModelConfig):
    """Chat room record."""

    id: str = Field(..., min_length=1, max_length=200, description="Room identifier")
    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    description: str | None = Field(default=None, max_length=2000)
    is_private: bool = Field(default=False, description="Visibility flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last activity timestamp")


class RoomSummary(ChatRoom):
    """Room listing entry with its latest message and message count."""

    last_message: ChatMessage | None = Field(default=None)
    message_count: int = Field(default=0, ge=0)


class Pagination(BaseModelConfig):
    """Page metadata for message history."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)


class MessagePage(BaseModelConfig):
    """One page of room history, oldest message first."""

    messages: list[ChatMessage] = Field(default_factory=list)
    pagination: Pagination


class RoomCreate(BaseModelConfig):
    """Payload for creating a room through the REST API."""

    name: str = Field(..., max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    is_private: bool = Field(default=False)


class RoomUpdate(BaseModelConfig):
    """Partial room update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    is_private: bool | None = Field(default=None)

    @model_validator(mode="after")
    def reject_null_flags(self) -> "RoomUpdate":
        if "is_private" in self.model_fields_set and self.is_private is None:
            raise ValueError("isPrivate cannot be null")
        return self


class MessageCreate(BaseModelConfig):
    """Payload for posting a message through the REST API."""

    text: str = Field(..., description="Message body, trimmed before storing")
