"""Tests for system and transparency endpoints."""

from fastapi import status
from fastapi.testclient import TestClient

from fairseed.services import FairnessService


def test_system_config(client: TestClient) -> None:
    """Test system configuration endpoint."""
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert "app" in data and "fairness" in data
    assert data["fairness"]["hash_algorithm"] == "sha256"
    assert set(data["fairness"]["game_kinds"]) == {"coinflip", "diceroll", "slots", "roulette"}
    assert data["fairness"]["seed_storage"] == "database"
    assert "secret_key" not in str(data)


def test_system_health(client: TestClient) -> None:
    r = client.get("/api/v1/system/health")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["status"] == "healthy"
    assert data["components"]["database"] == "healthy"
    assert data["active_epoch"] == 0


def test_system_health_without_active_seed(
    client: TestClient, fairness_service: FairnessService
) -> None:
    fairness_service.registry.disclose(0)
    data = client.get("/api/v1/system/health").json()
    assert data["status"] == "unhealthy"
    assert data["components"]["seed_registry"].startswith("unhealthy")
    assert data["active_epoch"] is None
