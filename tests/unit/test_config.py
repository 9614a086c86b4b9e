"""Unit tests for settings and result types."""

import pytest
from pydantic import ValidationError

from teamhub.core.config import Settings, get_settings, reset_settings
from teamhub.core.result_types import Err, Ok, Result


@pytest.mark.unit
class TestSettings:
    """Test Settings validation."""

    def test_chat_defaults(self) -> None:
        settings = Settings()

        assert settings.chat_replay_window == 50
        assert settings.chat_max_message_length == 2000
        assert settings.chat_announce_departures is False
        assert settings.jwt_algorithm == "HS256"
        assert settings.is_development

    def test_settings_are_frozen(self) -> None:
        settings = Settings()

        with pytest.raises(ValidationError):
            settings.chat_replay_window = 10

    def test_production_rejects_test_secret(self) -> None:
        with pytest.raises(ValidationError, match="Test JWT secret"):
            Settings(
                api_env="production",
                jwt_secret="test-jwt-secret-for-testing-only-never-use-in-production",
            )

    def test_pool_max_must_cover_min(self) -> None:
        with pytest.raises(ValidationError):
            Settings(database_pool_min=5, database_pool_max=2)

    def test_invalid_cors_origin(self) -> None:
        with pytest.raises(ValidationError):
            Settings(api_cors_origins=["localhost:3000"])

    def test_unknown_store_backend(self) -> None:
        with pytest.raises(ValidationError):
            Settings(chat_store_backend="redis")

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAT_ANNOUNCE_DEPARTURES", "true")
        monkeypatch.setenv("CHAT_REPLAY_WINDOW", "20")
        reset_settings()
        try:
            settings = get_settings()
            assert settings.chat_announce_departures is True
            assert settings.chat_replay_window == 20
            assert get_settings() is settings
        finally:
            reset_settings()


@pytest.mark.unit
class TestResultTypes:
    """Test the Ok/Err result values."""

    def test_ok(self) -> None:
        result = Result.ok("value")

        assert isinstance(result, Ok)
        assert result.is_ok() and not result.is_err()
        assert result.unwrap_or("default") == "value"
        assert result.map(str.upper).unwrap() == "VALUE"

    def test_err(self) -> None:
        result = Result.err("boom")

        assert isinstance(result, Err)
        assert result.unwrap_or("default") == "default"
        assert result.unwrap_err() == "boom"
        assert result.map(str.upper) is result
        with pytest.raises(ValueError, match="boom"):
            result.unwrap()
