# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Chat room and message history endpoints.

These routes read and write the same store used by the socket protocol, so
messages sent over the socket show up in the history endpoint.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...core.errors import ChatErrorKind
from ...core.security import Identity
from ...models.chat import ChatRoom, MessageAuthor, MessageCreate, RoomCreate, RoomUpdate
from ...services.message_store import MessageStore
from ...websocket.runtime import ChatRuntime
from ..dependencies import get_current_user, get_runtime, get_store, require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_failure(action: str, error: str) -> HTTPException:
    logger.error("Failed to %s: %s", action, error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


def _room_not_found(room_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Chat room {room_id} not found",
    )


async def _load_room(store: MessageStore, room_id: str) -> ChatRoom:
    result = await store.get_room(room_id)
    if result.is_err():
        raise _store_failure("load chat room", result.unwrap_err())
    room = result.unwrap()
    if room is None:
        raise _room_not_found(room_id)
    return room


@router.get("/rooms")
async def list_rooms(
    store: MessageStore = Depends(get_store),
    current_user: Identity = Depends(get_current_user),
) -> dict[str, Any]:
    """List chat rooms, most recently active first."""
    result = await store.list_rooms()
    if result.is_err():
        raise _store_failure("list chat rooms", result.unwrap_err())
    return {"rooms": [room.to_wire() for room in result.unwrap()]}


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: RoomCreate,
    store: MessageStore = Depends(get_store),
    current_user: Identity = Depends(get_current_user),
) -> dict[str, Any]:
    """Create a chat room.

    Raises:
        HTTPException: 400 if the room name is blank
    """
    if not room_data.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Room name is required",
        )

    result = await store.create_room(room_data)
    if result.is_err():
        raise _store_failure("create chat room", result.unwrap_err())

    room = result.unwrap()
    logger.info("User %s created chat room %s", current_user.user_id, room.id)
    return {"room": room.to_wire()}


@router.get("/rooms/{room_id}")
async def get_room(
    room_id: str,
    store: MessageStore = Depends(get_store),
    current_user: Identity = Depends(get_current_user),
) -> dict[str, Any]:
    room = await _load_room(store, room_id)
    return {"room": room.to_wire()}


@router.put("/rooms/{room_id}")
async def update_room(
    room_id: str,
    room_update: RoomUpdate,
    store: MessageStore = Depends(get_store),
    current_user: Identity = Depends(get_current_user),
) -> dict[str, Any]:
    """Apply a partial update to a chat room."""
    if "name" in room_update.model_fields_set and not (room_update.name or "").strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Room name cannot be blank",
        )

    result = await store.update_room(room_id, room_update)
    if result.is_err():
        raise _store_failure("update chat room", result.unwrap_err())

    room = result.unwrap()
    if room is None:
        raise _room_not_found(room_id)
    return {"room": room.to_wire()}


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: str,
    runtime: ChatRuntime = Depends(get_runtime),
    current_user: Identity = Depends(require_admin),
) -> None:
    """Delete a chat room and its history (admin only).

    Live members are evicted and the next join recreates the room.
    """
    result = await runtime.store.delete_room(room_id)
    if result.is_err():
        raise _store_failure("delete chat room", result.unwrap_err())
    if not result.unwrap():
        raise _room_not_found(room_id)
    runtime.registry.forget(room_id)
    logger.info("Admin %s deleted chat room %s", current_user.user_id, room_id)


@router.get("/rooms/{room_id}/messages")
async def list_room_messages(
    room_id: str,
    page: int = Query(1, ge=1, description="Page number, 1 is the newest page"),
    limit: int = Query(50, ge=1, le=100, description="Messages per page"),
    store: MessageStore = Depends(get_store),
    current_user: Identity = Depends(get_current_user),
) -> dict[str, Any]:
    """Page through room history; messages are oldest first within a page."""
    await _load_room(store, room_id)

    result = await store.list_messages(room_id, page, limit)
    if result.is_err():
        raise _store_failure("load chat messages", result.unwrap_err())
    return result.unwrap().to_wire()


@router.post("/rooms/{room_id}/messages", status_code=status.HTTP_201_CREATED)
async def post_room_message(
    room_id: str,
    message_data: MessageCreate,
    runtime: ChatRuntime = Depends(get_runtime),
    current_user: Identity = Depends(get_current_user),
) -> dict[str, Any]:
    """Post a message as the caller; socket members of the room receive it live.

    Raises:
        HTTPException: 400 for blank or oversized text, 404 for unknown rooms
    """
    await _load_room(runtime.store, room_id)

    author = MessageAuthor(id=current_user.user_id, nickname=current_user.nickname)
    result = await runtime.handler.publish_message(room_id, author, message_data.text)
    if result.is_err():
        error = result.unwrap_err()
        if error.kind == ChatErrorKind.INVALID_MESSAGE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
        raise _store_failure("send chat message", error.detail or error.message)

    return {"message": result.unwrap().to_wire()}
