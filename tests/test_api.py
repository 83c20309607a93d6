"""
HTTP-level tests: envelopes, caching flags, validation and rate limiting.

The service graph is rebuilt per test with mocked clients and an in-memory
store, injected through FastAPI's dependency overrides.
"""
import pytest
from fastapi.testclient import TestClient

from gateway.cache import MemoryCacheStore
from gateway.clients import FetchResult
from gateway.errors import ErrorKind
from gateway.main import app, get_services
from gateway.rate_limiter import RateLimiter
from gateway.services import build_services

ok = FetchResult.ok


@pytest.fixture
def services(tournament_client, team_client, match_client, results_client):
    tournament_client.get_tournament.return_value = ok({"id": 42, "name": "Spring Cup"})
    tournament_client.get_tournament_teams.return_value = ok([{"id": 10}])
    results_client.get_standings.return_value = ok([{"team_id": 10, "position": 1}])
    match_client.get_upcoming_matches.return_value = ok([])
    match_client.get_live_matches.return_value = ok([])

    return build_services(
        store=MemoryCacheStore(),
        tournament_client=tournament_client,
        team_client=team_client,
        match_client=match_client,
        results_client=results_client,
        rate_limiter=RateLimiter(max_requests=1000),
    )


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Caching through HTTP
# =============================================================================

class TestTournamentEndpoint:

    def test_second_request_is_served_from_cache(self, client, tournament_client):
        first = client.get("/tournaments/42")
        second = client.get("/tournaments/42")

        assert first.status_code == 200
        assert first.json()["success"] is True
        assert first.json()["cached"] is False
        assert first.headers["X-Cache"] == "MISS"
        assert second.json()["cached"] is True
        assert second.headers["X-Cache"] == "HIT"
        assert first.json()["data"] == second.json()["data"]
        assert tournament_client.get_tournament.call_count == 1

    def test_refresh_bypasses_cache(self, client, tournament_client):
        client.get("/tournaments/42")
        response = client.get("/tournaments/42?refresh=true")

        assert response.json()["cached"] is False
        assert tournament_client.get_tournament.call_count == 2

    def test_degraded_slot_is_still_200(self, client, results_client):
        results_client.get_standings.return_value = FetchResult.err(ErrorKind.UNAVAILABLE)

        response = client.get("/tournaments/42")

        assert response.status_code == 200
        assert response.json()["data"]["standings"] is None

    def test_not_found(self, client, tournament_client):
        tournament_client.get_tournament.return_value = FetchResult.err(
            ErrorKind.NOT_FOUND, status=404
        )

        response = client.get("/tournaments/999")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Tournament not found"
        assert body["error_code"] == "NOT_FOUND"

    def test_upstream_unavailable(self, client, tournament_client):
        tournament_client.get_tournament.return_value = FetchResult.err(
            ErrorKind.UNAVAILABLE, "timeout"
        )

        response = client.get("/tournaments/42")

        assert response.status_code == 503
        assert response.json()["error_code"] == "SERVICE_UNAVAILABLE"

    def test_errors_are_not_cached(self, client, tournament_client):
        tournament_client.get_tournament.return_value = FetchResult.err(ErrorKind.UNAVAILABLE)
        client.get("/tournaments/42")

        tournament_client.get_tournament.return_value = ok({"id": 42})
        response = client.get("/tournaments/42")

        assert response.status_code == 200
        assert response.json()["cached"] is False


class TestLiveMatches:

    def test_live_matches_are_never_cached(self, client, match_client):
        first = client.get("/matches/live")
        second = client.get("/matches/live")

        assert first.json()["cached"] is False
        assert second.json()["cached"] is False
        assert match_client.get_live_matches.call_count == 2


# =============================================================================
# Validation
# =============================================================================

class TestValidation:

    @pytest.mark.parametrize("date", ["2024-13-45", "2024-02-30", "yesterday"])
    def test_invalid_dates(self, client, date):
        response = client.get(f"/matches/date/{date}")

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_valid_date(self, client, match_client):
        match_client.get_matches_by_date.return_value = ok([])

        response = client.get("/matches/date/2024-05-01")

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_search_query_too_short(self, client):
        response = client.get("/search?q=a")

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["field"] == "q"

    def test_blank_search_query_is_rejected(self, client, team_client):
        response = client.get("/search", params={"q": "   "})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["errors"][0]["field"] == "q"
        team_client.search_teams.assert_not_called()

    def test_invalid_search_type(self, client):
        assert client.get("/search?q=cup&type=players").status_code == 422

    def test_limit_bounds(self, client):
        assert client.get("/tournaments?limit=0").status_code == 422
        assert client.get("/tournaments?limit=101").status_code == 422

    def test_head_to_head_with_itself(self, client):
        assert client.get("/teams/10/head-to-head/10").status_code == 422


# =============================================================================
# Cache administration
# =============================================================================

class TestCacheEndpoints:

    def test_event_invalidation(self, client):
        client.get("/tournaments/42")

        response = client.post(
            "/cache/invalidate",
            json={"event_type": "sports.tournament.updated", "payload": {"tournament_id": 42}},
        )

        assert response.status_code == 200
        assert response.json()["data"]["removed"] == 1
        assert client.get("/tournaments/42").json()["cached"] is False

    def test_delete_tag(self, client):
        client.get("/tournaments/42")

        response = client.delete("/cache/tags/tournaments")

        assert response.json()["data"] == {"tag": "tournaments", "removed": 1}

    def test_clear(self, client):
        client.get("/tournaments/42")

        assert client.delete("/cache").json()["data"] == {"removed": 1}
        assert client.get("/tournaments/42").json()["cached"] is False

    def test_stats(self, client):
        client.get("/tournaments/42")
        client.get("/tournaments/42")

        stats = client.get("/cache/stats").json()["data"]

        assert stats["hits"] == 1
        assert stats["misses"] == 1

    def test_reset_stats(self, client):
        client.get("/tournaments/42")
        client.get("/tournaments/42")

        response = client.post("/cache/stats/reset")

        assert response.status_code == 200
        assert response.json()["data"]["hits"] == 0
        assert response.json()["data"]["misses"] == 0
        assert client.get("/tournaments/42").json()["cached"] is True

    @pytest.mark.parametrize("method, path", [
        ("POST", "/cache/invalidate"),
        ("DELETE", "/cache/tags/teams"),
    ])
    def test_cors_preflight_allows_admin_methods(self, client, method, path):
        response = client.options(
            path,
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": method,
            },
        )

        assert response.status_code == 200
        assert method in response.headers["access-control-allow-methods"]


def test_rate_limit(services):
    services.rate_limiter = RateLimiter(max_requests=2)
    app.dependency_overrides[get_services] = lambda: services
    try:
        client = TestClient(app)
        assert client.get("/tournaments/42").status_code == 200
        assert client.get("/tournaments/42").status_code == 200

        response = client.get("/tournaments/42")

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        assert response.json()["error_code"] == "RATE_LIMITED"
    finally:
        app.dependency_overrides.clear()
