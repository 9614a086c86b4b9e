"""Integration tests for the chat WebSocket endpoint."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketDisconnect


@pytest.mark.integration
class TestChatHandshake:
    """Test connection authentication."""

    def test_missing_token_is_rejected_with_policy_violation(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/chat") as websocket:
            frame = websocket.receive_json()
            assert frame["type"] == "error"
            assert frame["data"]["kind"] == "MissingCredential"

            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
            assert exc_info.value.code == 1008

    def test_invalid_token_is_rejected(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/chat?token=not-a-jwt") as websocket:
            frame = websocket.receive_json()
            assert frame["data"] == {
                "message": "Authentication token is invalid or expired",
                "kind": "InvalidCredential",
            }

            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
            assert exc_info.value.code == 1008

    def test_query_token_connects(
        self, client: TestClient, issue_token: Callable[..., str]
    ) -> None:
        with client.websocket_connect(f"/ws/chat?token={issue_token('u1', 'Alice')}") as websocket:
            frame = websocket.receive_json()

        assert frame["type"] == "connected"
        assert frame["sequence"] == 1
        assert frame["data"]["userId"] == "u1"
        assert frame["data"]["nickname"] == "Alice"
        assert frame["data"]["sessionId"]

    def test_authorization_header_connects(
        self, client: TestClient, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        with client.websocket_connect("/ws/chat", headers=auth_headers("u2", "Bob")) as websocket:
            frame = websocket.receive_json()

        assert frame["type"] == "connected"
        assert frame["data"]["userId"] == "u2"


@pytest.mark.integration
class TestChatFlow:
    """Two users chatting over real sockets."""

    def test_join_send_and_history(
        self,
        client: TestClient,
        issue_token: Callable[..., str],
        auth_headers: Callable[..., dict[str, str]],
    ) -> None:
        alice_url = f"/ws/chat?token={issue_token('u1', 'Alice')}"
        bob_url = f"/ws/chat?token={issue_token('u2', 'Bob')}"

        with client.websocket_connect(alice_url) as alice, client.websocket_connect(bob_url) as bob:
            assert alice.receive_json()["type"] == "connected"
            assert bob.receive_json()["type"] == "connected"

            alice.send_json({"type": "join_room", "data": "general"})
            joined = alice.receive_json()
            assert joined["type"] == "room_joined"
            assert joined["data"] == {"roomId": "general", "messages": []}

            bob.send_json({"type": "join_room", "data": {"roomId": "general"}})
            assert bob.receive_json()["type"] == "room_joined"
            presence = alice.receive_json()
            assert presence["type"] == "user_joined"
            assert presence["data"] == {"roomId": "general", "userId": "u2", "nickname": "Bob"}

            bob.send_json({"type": "send_message", "data": {"roomId": "general", "text": "hi"}})
            to_bob = bob.receive_json()
            to_alice = alice.receive_json()
            assert to_bob["type"] == to_alice["type"] == "new_message"
            assert to_bob["data"] == to_alice["data"]
            assert to_alice["data"]["text"] == "hi"
            assert to_alice["data"]["user"] == {"id": "u2", "nickname": "Bob"}

            alice.send_json({"type": "send_message", "data": {"roomId": "general", "text": "  "}})
            error = alice.receive_json()
            assert error["type"] == "error"
            assert error["data"]["kind"] == "InvalidMessage"

            alice.send_json({"type": "ping", "data": {"clientTime": 99}})
            pong = alice.receive_json()
            assert pong["type"] == "pong"
            assert pong["data"]["clientTime"] == 99

        response = client.get("/api/v1/chat/rooms/general/messages", headers=auth_headers())
        assert response.status_code == 200
        body = response.json()
        assert [message["text"] for message in body["messages"]] == ["hi"]
        assert body["pagination"] == {"page": 1, "limit": 50, "total": 1, "pages": 1}

    def test_bad_frames_keep_connection_open(
        self, client: TestClient, issue_token: Callable[..., str]
    ) -> None:
        with client.websocket_connect(f"/ws/chat?token={issue_token()}") as websocket:
            websocket.receive_json()

            websocket.send_text("{not json")
            assert websocket.receive_json()["data"]["kind"] == "ValidationError"

            websocket.send_json({"type": "dance"})
            unknown = websocket.receive_json()
            assert unknown["data"]["kind"] == "ValidationError"
            assert "join_room" in unknown["data"]["message"]

            websocket.send_json({"type": "send_message", "data": {"roomId": "general", "text": "hi"}})
            not_in_room = websocket.receive_json()
            assert not_in_room["data"]["kind"] == "NotInRoom"
            assert not_in_room["sequence"] == 4


@pytest.mark.integration
class TestRestAndSocketTogether:
    """REST writes and deletes as seen by connected sockets."""

    def test_rest_post_reaches_socket_members(
        self,
        client: TestClient,
        issue_token: Callable[..., str],
        auth_headers: Callable[..., dict[str, str]],
    ) -> None:
        with client.websocket_connect(f"/ws/chat?token={issue_token('u1', 'Alice')}") as alice:
            alice.receive_json()
            alice.send_json({"type": "join_room", "data": "general"})
            assert alice.receive_json()["type"] == "room_joined"

            response = client.post(
                "/api/v1/chat/rooms/general/messages",
                json={"text": "posted over http"},
                headers=auth_headers("u2", "Bob"),
            )
            assert response.status_code == 201

            pushed = alice.receive_json()
            assert pushed["type"] == "new_message"
            assert pushed["data"] == response.json()["message"]

    def test_deleted_room_can_be_rejoined(
        self,
        client: TestClient,
        issue_token: Callable[..., str],
        auth_headers: Callable[..., dict[str, str]],
    ) -> None:
        admin = auth_headers("admin-1", "Root", role="admin")

        with client.websocket_connect(f"/ws/chat?token={issue_token('u1', 'Alice')}") as alice:
            alice.receive_json()
            alice.send_json({"type": "join_room", "data": "general"})
            alice.receive_json()
            alice.send_json({"type": "send_message", "data": {"roomId": "general", "text": "old"}})
            assert alice.receive_json()["type"] == "new_message"

            assert client.delete("/api/v1/chat/rooms/general", headers=admin).status_code == 204
            evicted = alice.receive_json()
            assert evicted["type"] == "error"
            assert evicted["data"]["kind"] == "NotInRoom"

            alice.send_json({"type": "join_room", "data": "general"})
            rejoined = alice.receive_json()
            assert rejoined["type"] == "room_joined"
            assert rejoined["data"]["messages"] == []

            alice.send_json({"type": "send_message", "data": {"roomId": "general", "text": "new"}})
            assert alice.receive_json()["data"]["text"] == "new"

        room = client.get("/api/v1/chat/rooms/general", headers=admin)
        assert room.status_code == 200
        history = client.get("/api/v1/chat/rooms/general/messages", headers=admin).json()
        assert [message["text"] for message in history["messages"]] == ["new"]
