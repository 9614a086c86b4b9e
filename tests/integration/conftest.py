"""Fixtures that run the FastAPI application against the in-memory store."""

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from teamhub.core.config import Settings
from teamhub.main import create_app
from teamhub.services.memory_store import InMemoryMessageStore


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """Test client with the lifespan running, so the chat runtime exists."""
    app = create_app(settings=settings, store=InMemoryMessageStore())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(issue_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    def _headers(user_id: str = "u1", nickname: str = "Alice", **kwargs: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user_id, nickname, **kwargs)}"}

    return _headers
