"""Unit tests for settings validation."""

import pytest
from pydantic import ValidationError

from slack2logs.config import AppSettings, SlackSettings, VictoriaLogsSettings


class TestSlackSettings:
    """Tests for Slack settings."""

    def test_channels_from_comma_separated_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-env-token")
        monkeypatch.setenv("SLACK_CHANNELS", "C001, C002,,C003")

        settings = SlackSettings()

        assert settings.channels == ["C001", "C002", "C003"]
        assert settings.batch_flush_interval == 10.0
        assert settings.history_page_size == 500
        assert settings.app_token is None

    def test_empty_channel_list_is_rejected(self) -> None:
        with pytest.raises(ValidationError, match="At least one slack channel"):
            SlackSettings(bot_token="xoxb-token", channels="")

    def test_token_prefixes_are_checked(self) -> None:
        with pytest.raises(ValidationError, match="xoxb-"):
            SlackSettings(bot_token="xoxp-token", channels=["C001"])
        with pytest.raises(ValidationError, match="xapp-"):
            SlackSettings(bot_token="xoxb-token", app_token="xoxb-token", channels=["C001"])


class TestVictoriaLogsSettings:
    """Tests for delivery settings."""

    def test_defaults(self) -> None:
        settings = VictoriaLogsSettings()

        assert settings.addr == "http://localhost:9428"
        assert settings.user == ""
        assert settings.password is None

    def test_password_without_user_is_rejected(self) -> None:
        with pytest.raises(ValidationError, match="missing `username`"):
            VictoriaLogsSettings(password="secret")


class TestAppSettings:
    """Tests for application settings."""

    def test_env_aliases(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUN_MODE", "backfill")
        monkeypatch.setenv("HTTP_LISTEN_PORT", "9000")
        monkeypatch.setenv("LOG_FORMAT", "json")

        settings = AppSettings()

        assert settings.run_mode == "backfill"
        assert settings.http_port == 9000
        assert settings.log_format == "json"

    def test_unknown_run_mode_is_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUN_MODE", "replay")

        with pytest.raises(ValidationError):
            AppSettings()
