"""Unit tests for the HTTP endpoints and run mode selection."""

import pytest
from fastapi.testclient import TestClient

from slack2logs.api.router import create_app
from slack2logs.collectors.slack_collector import RunMode
from slack2logs.config import Settings
from slack2logs.main import get_run_mode
from slack2logs.metrics import MESSAGES_RECEIVED


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings, RunMode.LIVE.value))


class TestEndpoints:
    """Tests for the index, health and metrics endpoints."""

    def test_index_links_endpoints(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert "/metrics" in response.text
        assert "/health" in response.text

    def test_health(self, client: TestClient, settings: Settings) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "mode": "live",
            "version": settings.app.app_version,
        }

    def test_metrics_exposes_counters(self, client: TestClient) -> None:
        MESSAGES_RECEIVED.inc()

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'vm_slack2logs_messages_received_total{source="slack"}' in response.text
        assert "vm_slack2logs_delivery_errors_total" in response.text


class TestRunMode:
    """Tests for choosing the run mode."""

    def test_cli_flag_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUN_MODE", "live")

        assert get_run_mode(["--mode", "backfill"]) is RunMode.BACKFILL

    def test_environment_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUN_MODE", "BACKFILL")

        assert get_run_mode([]) is RunMode.BACKFILL

    def test_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RUN_MODE", raising=False)

        assert get_run_mode([]) is RunMode.LIVE
        assert get_run_mode([], default=RunMode.BACKFILL) is RunMode.BACKFILL

    def test_unknown_environment_value_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUN_MODE", "replay")

        assert get_run_mode([]) is RunMode.LIVE
