# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""WebSocket endpoint for the real-time chat protocol."""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ...websocket.message_models import ChatEnvelope, ChatEvent
from ...websocket.runtime import ChatRuntime

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat-socket"])


def extract_credential(websocket: WebSocket) -> str | None:
    """Read the bearer token from ``?token=`` or the Authorization header."""
    token = websocket.query_params.get("token")
    if token:
        return token

    authorization = websocket.headers.get("authorization", "")
    scheme, _, credential = authorization.partition(" ")
    if scheme.lower() == "bearer" and credential.strip():
        return credential.strip()
    return None


@router.websocket("/ws/chat")
async def chat_websocket(websocket: WebSocket) -> None:
    """Authenticate, then process frames sequentially until the client leaves."""
    runtime: ChatRuntime = websocket.app.state.chat
    handler = runtime.handler

    await websocket.accept()

    authenticated = handler.authenticate(extract_credential(websocket))
    if authenticated.is_err():
        rejection = ChatEnvelope(
            type=ChatEvent.ERROR,
            data=authenticated.unwrap_err().to_payload(),
            sequence=1,
        )
        await websocket.send_json(rejection.to_wire())
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    session = authenticated.unwrap()
    session.enqueue(
        ChatEvent.CONNECTED,
        {
            "sessionId": session.session_id,
            "userId": session.user_id,
            "nickname": session.nickname,
        },
    )
    writer = asyncio.create_task(session.pump(websocket.send_json))

    try:
        while True:
            raw = await websocket.receive_text()
            frame: Any
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                frame = None
            await handler.handle(session, frame)
    except WebSocketDisconnect as e:
        logger.debug("Session %s closed by client (code=%s)", session.session_id, e.code)
    finally:
        handler.disconnect(session)
        writer.cancel()
        outcome = (await asyncio.gather(writer, return_exceptions=True))[0]
        if isinstance(outcome, Exception):
            logger.warning("Writer for session %s stopped: %s", session.session_id, outcome)
