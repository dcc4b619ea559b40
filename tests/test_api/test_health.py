from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_rate_cache, get_refresh_scheduler
from api.main import app
from application.services import RefreshScheduler
from config.settings import Settings, get_settings
from infrastructure.cache.rate_cache import RateCache


@pytest.fixture
def cache(clock):
    return RateCache(clock=clock)


@pytest.fixture
def client(cache, clock):
    scheduler = RefreshScheduler(source=AsyncMock(), cache=cache, clock=clock)
    app.dependency_overrides[get_rate_cache] = lambda: cache
    app.dependency_overrides[get_refresh_scheduler] = lambda: scheduler
    app.dependency_overrides[get_settings] = lambda: Settings(STALENESS_THRESHOLD_SECONDS=3600)
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def test_health_unavailable_without_rates(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "unavailable"
    assert data["snapshot_age_seconds"] is None
    assert data["currencies"] == 0
    assert data["refresh"]["running"] is False
    assert data["refresh"]["consecutive_failures"] == 0
    assert data["refresh"]["next_retry_at"] is None


def test_health_healthy_with_fresh_rates(client, cache, snapshot, clock):
    cache.install(snapshot)
    clock.advance(minutes=5)

    data = client.get("/api/v1/health").json()

    assert data["status"] == "healthy"
    assert data["snapshot_age_seconds"] == timedelta(minutes=5).total_seconds()
    assert data["valid_for"] == "2025-10-17"
    assert data["currencies"] == 3


def test_health_degraded_with_stale_rates(client, cache, snapshot, clock):
    cache.install(snapshot)
    clock.advance(hours=2)

    assert client.get("/api/v1/health").json()["status"] == "degraded"
