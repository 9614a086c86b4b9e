"""Test configuration and shared fixtures for the chat core.

Fixtures build the chat collaborators around the in-memory message store so
unit tests run without PostgreSQL.
"""

from collections.abc import Callable
from typing import Any

import pytest

from teamhub.core.config import Settings
from teamhub.core.security import Identity, TokenVerifier
from teamhub.services.memory_store import InMemoryMessageStore
from teamhub.websocket.handlers.chat import ChatProtocolHandler
from teamhub.websocket.registry import RoomRegistry
from teamhub.websocket.session import ConnectionSession

TEST_JWT_SECRET = "test-jwt-secret-for-unit-tests-only-not-for-production"


@pytest.fixture
def settings() -> Settings:
    """Settings for tests, independent of the process environment."""
    return Settings(
        api_env="development",
        jwt_secret=TEST_JWT_SECRET,
        chat_store_backend="memory",
    )


@pytest.fixture
def verifier(settings: Settings) -> TokenVerifier:
    return TokenVerifier.from_settings(settings)


@pytest.fixture
def issue_token(verifier: TokenVerifier) -> Callable[..., str]:
    """Mint an access token for a user id and nickname."""

    def _issue(user_id: str = "u1", nickname: str = "Alice", **kwargs: Any) -> str:
        return verifier.issue(Identity(user_id=user_id, nickname=nickname, **kwargs))

    return _issue


@pytest.fixture
def memory_store() -> InMemoryMessageStore:
    return InMemoryMessageStore()


@pytest.fixture
def registry(memory_store: InMemoryMessageStore) -> RoomRegistry:
    return RoomRegistry(memory_store)


@pytest.fixture
def handler(
    verifier: TokenVerifier,
    memory_store: InMemoryMessageStore,
    registry: RoomRegistry,
) -> ChatProtocolHandler:
    return ChatProtocolHandler(verifier, memory_store, registry)


@pytest.fixture
def make_session(
    handler: ChatProtocolHandler, issue_token: Callable[..., str]
) -> Callable[..., ConnectionSession]:
    """Open an authenticated session through the handler's handshake."""

    def _make(user_id: str = "u1", nickname: str = "Alice") -> ConnectionSession:
        result = handler.authenticate(issue_token(user_id, nickname))
        assert result.is_ok(), result
        return result.unwrap()

    return _make


@pytest.fixture
def drain() -> Callable[[ConnectionSession], list[tuple[str, dict[str, Any]]]]:
    """Drain a session's outbox as ``(type, data)`` pairs."""

    def _drain(session: ConnectionSession) -> list[tuple[str, dict[str, Any]]]:
        return [(envelope.type.value, envelope.data) for envelope in session.drain()]

    return _drain
