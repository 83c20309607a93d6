"""Client for the match service."""
from typing import Any, Dict, Optional

from config.settings import settings
from .base import ServiceClient
from .result import FetchResult


class MatchServiceClient(ServiceClient):
    service_name = "match"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url or settings.match_service_url, **kwargs)

    def get_match(self, match_id: int) -> FetchResult:
        return self.get(f"/api/public/matches/{match_id}/public")

    def get_matches(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.get("/api/public/matches", filters)

    def get_tournament_matches(
        self, tournament_id: int, filters: Optional[Dict[str, Any]] = None
    ) -> FetchResult:
        return self.get(
            "/api/public/matches", {**(filters or {}), "tournament_id": tournament_id}
        )

    def get_team_matches(
        self, team_id: int, filters: Optional[Dict[str, Any]] = None
    ) -> FetchResult:
        return self.get("/api/public/matches", {**(filters or {}), "team_id": team_id})

    def get_match_events(self, match_id: int) -> FetchResult:
        return self.get(f"/api/public/matches/{match_id}/events/public")

    def get_match_lineups(self, match_id: int) -> FetchResult:
        return self.get(f"/api/public/matches/{match_id}/lineups")

    def get_match_statistics(self, match_id: int) -> FetchResult:
        return self.get(f"/api/public/matches/{match_id}/statistics")

    def get_live_matches(self) -> FetchResult:
        return self.get("/api/public/matches/live")

    def get_upcoming_matches(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.get("/api/public/matches/upcoming", filters)

    def get_completed_matches(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.get("/api/public/matches/completed", filters)

    def get_matches_by_date(
        self, date: str, filters: Optional[Dict[str, Any]] = None
    ) -> FetchResult:
        return self.get(f"/api/public/matches/date/{date}", filters)
