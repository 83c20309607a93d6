"""Client for the team service (teams and players)."""
from typing import Any, Dict, Optional

from config.settings import settings
from .base import ServiceClient
from .result import FetchResult


class TeamServiceClient(ServiceClient):
    service_name = "team"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url or settings.team_service_url, **kwargs)

    def get_team(self, team_id: int) -> FetchResult:
        return self.get(f"/api/public/teams/{team_id}")

    def get_team_players(self, team_id: int) -> FetchResult:
        return self.get(f"/api/public/teams/{team_id}/squad")

    def get_team_statistics(
        self, team_id: int, tournament_id: Optional[int] = None
    ) -> FetchResult:
        return self.get(
            f"/api/public/teams/{team_id}/statistics",
            {"tournament_id": tournament_id},
        )

    def get_player_statistics(
        self, player_id: int, tournament_id: Optional[int] = None
    ) -> FetchResult:
        return self.get(
            f"/api/public/players/{player_id}/statistics",
            {"tournament_id": tournament_id},
        )

    def search_teams(self, query: str, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.get("/api/public/teams/search", {"q": query, **(filters or {})})
