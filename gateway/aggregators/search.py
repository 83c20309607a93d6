"""
Search across tournaments, teams and matches.
"""
from typing import Optional

from gateway.cache.core import Aggregate, EntityKind
from gateway.cache.policies import resolve
from gateway.clients import (
    FetchResult,
    MatchServiceClient,
    TeamServiceClient,
    TournamentServiceClient,
    items_of,
)
from .base import BaseAggregator
from .models import SearchResults

SEARCH_TYPES = ("all", "tournaments", "teams", "matches")


class SearchAggregator(BaseAggregator):
    """
    Fans a query out to every searchable service. There is no primary
    entity: a failing service just contributes no hits.
    """

    name = "search"

    def __init__(
        self,
        tournament_client: TournamentServiceClient,
        team_client: TeamServiceClient,
        match_client: MatchServiceClient,
        max_workers: Optional[int] = None,
    ):
        super().__init__(max_workers)
        self.tournament_client = tournament_client
        self.team_client = team_client
        self.match_client = match_client

    def search(
        self,
        query: str,
        search_type: str = "all",
        limit: int = 20,
        tournament_id: Optional[int] = None,
    ) -> FetchResult:
        filters = {"limit": limit, "tournament_id": tournament_id}
        plan = {}
        if search_type in ("all", "tournaments"):
            plan["tournaments"] = lambda: self.tournament_client.get_tournaments(
                {"q": query, **filters}
            )
        if search_type in ("all", "teams"):
            plan["teams"] = lambda: self.team_client.search_teams(query, filters)
        if search_type in ("all", "matches"):
            plan["matches"] = lambda: self.match_client.get_matches({"q": query, **filters})

        groups = {}
        for name, value in self.fetch_slots(plan, f"search '{query}'").items():
            hits = items_of(value)[:limit] if value is not None else []
            groups[name] = hits or None

        return FetchResult.ok(Aggregate(SearchResults(**groups), resolve(EntityKind.SEARCH)))
