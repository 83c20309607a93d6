"""
Liveness endpoint and the fallback error envelope.
"""
from fastapi.testclient import TestClient
from gateway.main import app

client = TestClient(app)


def test_health_is_reachable_without_upstreams():
    """/health never touches the service graph."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health_reports_cache_backend():
    body = client.get("/health").json()
    assert body["service"] == "gateway"
    assert body["cache_backend"] in ("memory", "redis")


def test_unknown_route_returns_error_envelope():
    response = client.get("/no-such-route")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert "timestamp" in body
