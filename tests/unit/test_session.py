"""Unit tests for connection sessions."""

import asyncio
from typing import Any

import pytest

from teamhub.core.errors import ChatError
from teamhub.core.security import Identity
from teamhub.websocket.message_models import ChatEvent, parse_room_payload, parse_send_message_payload
from teamhub.websocket.session import ConnectionSession, ConnectionState

ALICE = Identity(user_id="u1", nickname="Alice")


@pytest.mark.unit
@pytest.mark.asyncio
class TestConnectionSession:
    """Test outbound queueing and the writer pump."""

    async def test_pump_sends_in_order(self) -> None:
        session = ConnectionSession(ALICE)
        sent: list[dict[str, Any]] = []

        async def send(frame: dict[str, Any]) -> None:
            sent.append(frame)

        writer = asyncio.create_task(session.pump(send))
        session.enqueue(ChatEvent.PONG, {"n": 1})
        session.send_error(ChatError.validation("bad"))
        await asyncio.sleep(0)
        session.close()
        await asyncio.wait_for(writer, timeout=1)

        assert [frame["type"] for frame in sent] == ["pong", "error"]
        assert [frame["sequence"] for frame in sent] == [1, 2]
        assert sent[1]["data"] == {"message": "bad", "kind": "ValidationError"}
        assert "timestamp" in sent[0]

    async def test_enqueue_after_close_fails(self) -> None:
        session = ConnectionSession(ALICE)
        session.close()

        assert session.enqueue(ChatEvent.PONG, {}).is_err()
        assert session.state == ConnectionState.DISCONNECTED

    async def test_close_discards_undelivered_events(self) -> None:
        session = ConnectionSession(ALICE, outbox_size=1)
        sent: list[dict[str, Any]] = []

        async def send(frame: dict[str, Any]) -> None:
            sent.append(frame)

        assert session.enqueue(ChatEvent.PONG, {}).is_ok()
        assert session.enqueue(ChatEvent.PONG, {}).is_err()
        session.close()
        await asyncio.wait_for(session.pump(send), timeout=1)

        assert sent == []


@pytest.mark.unit
class TestPayloadParsing:
    """Test inbound payload shapes."""

    @pytest.mark.parametrize("data", ["general", {"roomId": "general"}, {"room_id": "general"}])
    def test_room_payload_shapes(self, data: Any) -> None:
        assert parse_room_payload(data).unwrap().room_id == "general"

    @pytest.mark.parametrize("data", [None, 7, {"roomId": 7}, {}])
    def test_bad_room_payloads(self, data: Any) -> None:
        assert parse_room_payload(data).is_err()

    def test_send_message_payload(self) -> None:
        payload = parse_send_message_payload({"roomId": "general", "text": "hi", "extra": 1})

        assert payload.unwrap().text == "hi"
        assert parse_send_message_payload("general").is_err()
