from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app import main as main_module
from app.main import _sync_pipeline, app
from pipelines.customer_sync import SyncRunSummary


@pytest.fixture
def client():
    """Test client that cleans up dependency overrides after each test."""
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthcheck(client):
    """Verify the healthcheck endpoint returns a successful response."""
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_trigger_sync_run_returns_summary(client):
    """Verify POST /sync/runs executes one run and reports its counters."""
    mock_pipeline = MagicMock()
    mock_pipeline.run_once.return_value = SyncRunSummary(
        run_id="run-123",
        started_at=datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
        finished_at=datetime(2024, 1, 1, 9, 0, 5, tzinfo=timezone.utc),
        fetched=3,
        delivered=2,
        failed=1,
    )
    app.dependency_overrides[_sync_pipeline] = lambda: mock_pipeline

    response = client.post("/sync/runs")

    assert response.status_code == 200
    body = response.json()
    assert body["run_id"] == "run-123"
    assert body["fetched"] == 3
    assert body["delivered"] == 2
    assert body["failed"] == 1
    assert body["fetch_failed"] is False
    mock_pipeline.run_once.assert_called_once_with()


def test_trigger_sync_run_reports_fetch_failure(client):
    """Verify a failed fetch still yields a successful response with the flag set."""
    mock_pipeline = MagicMock()
    mock_pipeline.run_once.return_value = SyncRunSummary(
        run_id="run-456",
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        fetch_failed=True,
    )
    app.dependency_overrides[_sync_pipeline] = lambda: mock_pipeline

    response = client.post("/sync/runs")

    assert response.status_code == 200
    assert response.json()["fetch_failed"] is True
    assert response.json()["fetched"] == 0


def test_trigger_sync_run_before_startup_is_unavailable(client):
    """Verify runs are refused until the application has started."""
    response = client.post("/sync/runs")
    assert response.status_code == 503


def test_startup_builds_one_pipeline_shared_by_requests(monkeypatch, test_settings):
    """Verify the pipeline is created at startup, reused per request and closed on shutdown."""
    created: list[MagicMock] = []

    def build_pipeline(settings):
        pipeline = MagicMock()
        pipeline.run_once.return_value = SyncRunSummary(
            run_id="run-789",
            started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        created.append(pipeline)
        return pipeline

    monkeypatch.setattr(main_module, "settings", test_settings)
    monkeypatch.setattr(main_module, "configure_logging", lambda settings: None)
    monkeypatch.setattr(main_module, "init_db", lambda: None)
    monkeypatch.setattr(main_module, "CustomerSyncPipeline", build_pipeline)

    with TestClient(app) as started_client:
        assert len(created) == 1
        assert main_module._scheduler is None
        first = started_client.post("/sync/runs")
        second = started_client.post("/sync/runs")

    assert first.status_code == 200
    assert second.status_code == 200
    assert len(created) == 1
    assert created[0].run_once.call_count == 2
    created[0].close.assert_called_once_with()
    assert main_module._pipeline is None
