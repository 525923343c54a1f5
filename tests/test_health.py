"""Tests for the /health endpoint."""

from fastapi.testclient import TestClient

from tavern.core import __version__


def test_health_returns_ok(client: TestClient) -> None:
    """GET /health should return 200 with status 'ok'."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert data["version"] == __version__


def test_unknown_route_uses_failure_envelope(client: TestClient) -> None:
    response = client.get("/no-such-route")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}
