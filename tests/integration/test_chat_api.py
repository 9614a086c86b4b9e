"""Integration tests for the chat REST endpoints."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

Headers = Callable[..., dict[str, str]]


@pytest.mark.integration
class TestChatRoomsAPI:
    """Test room CRUD and history routes."""

    def test_requires_bearer_token(self, client: TestClient) -> None:
        assert client.get("/api/v1/chat/rooms").status_code == 401
        response = client.get(
            "/api/v1/chat/rooms", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_room_lifecycle(self, client: TestClient, auth_headers: Headers) -> None:
        headers = auth_headers()

        created = client.post(
            "/api/v1/chat/rooms",
            json={"name": "Design", "description": "UI work", "isPrivate": True},
            headers=headers,
        )
        assert created.status_code == 201
        room = created.json()["room"]
        assert room["name"] == "Design"
        assert room["isPrivate"] is True
        room_id = room["id"]

        fetched = client.get(f"/api/v1/chat/rooms/{room_id}", headers=headers)
        assert fetched.json()["room"]["description"] == "UI work"

        updated = client.put(
            f"/api/v1/chat/rooms/{room_id}", json={"name": "Design Team"}, headers=headers
        )
        assert updated.status_code == 200
        assert updated.json()["room"]["name"] == "Design Team"
        assert updated.json()["room"]["description"] == "UI work"

        listed = client.get("/api/v1/chat/rooms", headers=headers).json()["rooms"]
        assert [entry["id"] for entry in listed] == [room_id]
        assert listed[0]["messageCount"] == 0
        assert listed[0]["lastMessage"] is None

    def test_blank_name_is_rejected(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.post("/api/v1/chat/rooms", json={"name": "   "}, headers=auth_headers())

        assert response.status_code == 400

    def test_unknown_room_is_404(self, client: TestClient, auth_headers: Headers) -> None:
        headers = auth_headers()

        assert client.get("/api/v1/chat/rooms/ghost", headers=headers).status_code == 404
        assert client.put(
            "/api/v1/chat/rooms/ghost", json={"name": "x"}, headers=headers
        ).status_code == 404
        assert client.get("/api/v1/chat/rooms/ghost/messages", headers=headers).status_code == 404

    def test_null_privacy_flag_is_rejected(self, client: TestClient, auth_headers: Headers) -> None:
        headers = auth_headers()
        room_id = client.post(
            "/api/v1/chat/rooms", json={"name": "Ops"}, headers=headers
        ).json()["room"]["id"]

        response = client.put(
            f"/api/v1/chat/rooms/{room_id}", json={"isPrivate": None}, headers=headers
        )

        assert response.status_code == 422
        fetched = client.get(f"/api/v1/chat/rooms/{room_id}", headers=headers).json()["room"]
        assert fetched["isPrivate"] is False

    def test_post_message(self, client: TestClient, auth_headers: Headers) -> None:
        headers = auth_headers("u2", "Bob")
        room_id = client.post(
            "/api/v1/chat/rooms", json={"name": "Ops"}, headers=headers
        ).json()["room"]["id"]

        created = client.post(
            f"/api/v1/chat/rooms/{room_id}/messages",
            json={"text": "  deploy done  "},
            headers=headers,
        )

        assert created.status_code == 201
        message = created.json()["message"]
        assert message["text"] == "deploy done"
        assert message["roomId"] == room_id
        assert message["user"] == {"id": "u2", "nickname": "Bob"}

        history = client.get(f"/api/v1/chat/rooms/{room_id}/messages", headers=headers).json()
        assert [entry["id"] for entry in history["messages"]] == [message["id"]]
        listed = client.get("/api/v1/chat/rooms", headers=headers).json()["rooms"]
        assert listed[0]["messageCount"] == 1
        assert listed[0]["updatedAt"] >= listed[0]["createdAt"]

    def test_post_message_validation(self, client: TestClient, auth_headers: Headers) -> None:
        headers = auth_headers()
        room_id = client.post(
            "/api/v1/chat/rooms", json={"name": "Ops"}, headers=headers
        ).json()["room"]["id"]
        url = f"/api/v1/chat/rooms/{room_id}/messages"

        assert client.post(url, json={"text": "   "}, headers=headers).status_code == 400
        assert client.post(url, json={"text": "x" * 2001}, headers=headers).status_code == 400
        assert client.post(url, json={"text": "hi"}).status_code == 401
        assert client.post(
            "/api/v1/chat/rooms/ghost/messages", json={"text": "hi"}, headers=headers
        ).status_code == 404
        assert client.get(url, headers=headers).json()["pagination"]["total"] == 0

    def test_delete_requires_admin(self, client: TestClient, auth_headers: Headers) -> None:
        room_id = client.post(
            "/api/v1/chat/rooms", json={"name": "Temp"}, headers=auth_headers()
        ).json()["room"]["id"]

        forbidden = client.delete(f"/api/v1/chat/rooms/{room_id}", headers=auth_headers())
        assert forbidden.status_code == 403

        admin = auth_headers("admin-1", "Root", role="admin")
        assert client.delete(f"/api/v1/chat/rooms/{room_id}", headers=admin).status_code == 204
        assert client.delete(f"/api/v1/chat/rooms/{room_id}", headers=admin).status_code == 404


@pytest.mark.integration
class TestHealthAPI:
    """Test the health endpoints."""

    def test_health_reports_store_and_registry(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["store"]["status"] == "healthy"
        assert body["chat"]["total_rooms"] == 0

    def test_liveness(self, client: TestClient) -> None:
        assert client.get("/api/v1/health/live").json()["status"] == "healthy"
