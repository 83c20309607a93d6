"""Client for the tournament service."""
from typing import Any, Dict, Optional

from config.settings import settings
from .base import ServiceClient
from .result import FetchResult


class TournamentServiceClient(ServiceClient):
    service_name = "tournament"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url or settings.tournament_service_url, **kwargs)

    def get_tournament(self, tournament_id: int) -> FetchResult:
        return self.get(f"/api/tournaments/{tournament_id}")

    def get_tournaments(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.get("/api/tournaments", filters)

    def get_tournament_teams(self, tournament_id: int) -> FetchResult:
        return self.get(f"/api/tournaments/{tournament_id}/teams")

    def get_venue(self, venue_id: int) -> FetchResult:
        return self.get(f"/api/venues/{venue_id}")
