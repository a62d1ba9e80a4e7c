"""
Tests for configuration and logging helpers.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from utilities.config import TrackerConfig, load_config
from utilities.logger import AuthEventLogger, redact_secret
from tests.fakes import TEST_SECRET


class TestTrackerConfig:
    """Test cases for TrackerConfig."""

    def test_defaults(self):
        config = TrackerConfig()

        assert config.auth_strategy == "token"
        assert config.session_cookie_name == "sid"
        assert config.token_ttl_seconds == 7 * 24 * 3600
        assert config.session_ttl_seconds == 24 * 3600
        assert config.port == 5000
        assert config.get_log_file_path() is None
        assert config.get_frontend_path() is None
        assert not config.uses_sessions()

    def test_values_are_normalized(self):
        config = TrackerConfig(auth_strategy="SESSION", log_level="debug", log_format="Console")

        assert config.auth_strategy == "session"
        assert config.log_level == "DEBUG"
        assert config.log_format == "console"
        assert config.uses_sessions()

    @pytest.mark.parametrize("overrides", [
        {"auth_strategy": "oauth"},
        {"jwt_secret": "short"},
        {"token_ttl_seconds": 0},
        {"session_ttl_seconds": -5},
        {"bcrypt_rounds": 3},
        {"bcrypt_rounds": 20},
        {"search_max_results": 41},
        {"request_timeout": 0},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            TrackerConfig(**overrides)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("AUTH_STRATEGY", "session")
        monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
        monkeypatch.setenv("SESSION_TTL_SECONDS", "600")

        config = load_config()

        assert config.auth_strategy == "session"
        assert config.jwt_secret == TEST_SECRET
        assert config.session_ttl_seconds == 600

    def test_cors_origins_split(self):
        config = TrackerConfig(cors_origins="http://localhost:3000, https://books.example.com ,")

        assert config.get_cors_origins() == ["http://localhost:3000", "https://books.example.com"]

    def test_frontend_path(self, tmp_path):
        assert TrackerConfig(frontend_dir=str(tmp_path)).get_frontend_path() == tmp_path
        assert TrackerConfig(frontend_dir=str(tmp_path / "missing")).get_frontend_path() is None

    def test_log_file_path(self, tmp_path):
        config = TrackerConfig(log_file=str(tmp_path / "logs" / "tracker.log"))

        assert config.get_log_file_path() == Path(tmp_path / "logs" / "tracker.log")


class TestAuthEventLogger:
    """Test cases for auth event logging."""

    def test_redact_secret(self):
        assert redact_secret("abcdefghijklmnop") == "abcdef..."
        assert redact_secret(None) is None
        assert redact_secret("") is None

    def test_bound_context_added_to_events(self):
        events = AuthEventLogger("accounts-test").bind_context(auth_strategy="token")
        events.logger = Mock()

        events.log_login("user-1", "token")

        events.logger.info.assert_called_once_with(
            "Login succeeded", user_id="user-1", strategy="token", auth_strategy="token"
        )

    def test_credentials_are_redacted(self):
        events = AuthEventLogger("accounts-test")
        events.logger = Mock()

        events.log_logout("session-id-that-is-long", "session")
        events.log_rejected("SessionExpiredError", "session-id-that-is-long")

        for call in events.logger.info.call_args_list:
            assert call.kwargs["credential"] == "sessio..."
