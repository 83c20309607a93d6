"""Client for the results service (standings, statistics, form)."""
from typing import Optional

from config.settings import settings
from .base import ServiceClient
from .result import FetchResult


class ResultsServiceClient(ServiceClient):
    service_name = "results"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(base_url or settings.results_service_url, **kwargs)

    def get_standings(self, tournament_id: int) -> FetchResult:
        return self.get(f"/api/tournaments/{tournament_id}/standings")

    def get_tournament_statistics(self, tournament_id: int) -> FetchResult:
        return self.get(f"/api/tournaments/{tournament_id}/statistics")

    def get_top_scorers(self, tournament_id: int, limit: int = 10) -> FetchResult:
        return self.get(
            f"/api/tournaments/{tournament_id}/top-scorers", {"limit": limit}
        )

    def get_team_statistics(
        self, team_id: int, tournament_id: Optional[int] = None
    ) -> FetchResult:
        return self.get(
            f"/api/teams/{team_id}/statistics", {"tournament_id": tournament_id}
        )

    def get_team_form(self, team_id: int, limit: int = 5) -> FetchResult:
        return self.get(f"/api/teams/{team_id}/form", {"limit": limit})

    def get_head_to_head(
        self, team1_id: int, team2_id: int, tournament_id: Optional[int] = None
    ) -> FetchResult:
        return self.get(
            "/api/head-to-head",
            {
                "team1_id": team1_id,
                "team2_id": team2_id,
                "tournament_id": tournament_id,
            },
        )
