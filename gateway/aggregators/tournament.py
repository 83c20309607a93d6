"""
Tournament aggregations: detail page, overview, featured list, standings.
"""
from typing import Any, Dict, List, Optional

from gateway.cache.core import Aggregate, EntityKind
from gateway.cache.policies import resolve
from gateway.clients import (
    FetchResult,
    MatchServiceClient,
    ResultsServiceClient,
    TeamServiceClient,
    TournamentServiceClient,
    items_of,
)
from .base import BaseAggregator
from .models import FeaturedTournament, TournamentDetails, TournamentOverview

UPCOMING_LIMIT = 5
RECENT_LIMIT = 5
TOP_SCORERS_LIMIT = 5
FEATURED_LIMIT = 10
FEATURED_TOP_TEAMS = 4


class TournamentAggregator(BaseAggregator):
    name = "tournament"

    def __init__(
        self,
        tournament_client: TournamentServiceClient,
        match_client: MatchServiceClient,
        results_client: ResultsServiceClient,
        team_client: TeamServiceClient,
        max_workers: Optional[int] = None,
    ):
        super().__init__(max_workers)
        self.tournament_client = tournament_client
        self.match_client = match_client
        self.results_client = results_client
        self.team_client = team_client

    def tournament_details(self, tournament_id: int) -> FetchResult:
        """
        Tournament with its teams, standings and next five matches.
        """
        primary = self.tournament_client.get_tournament(tournament_id)
        if self.primary_failed(primary):
            return self.primary_error(primary, "tournament")

        slots = self.fetch_slots(
            {
                "teams": lambda: self.tournament_client.get_tournament_teams(
                    tournament_id
                ).map(items_of),
                "standings": lambda: self.results_client.get_standings(
                    tournament_id
                ).map(items_of),
                "upcoming_matches": lambda: self.match_client.get_upcoming_matches(
                    {"tournament_id": tournament_id, "limit": UPCOMING_LIMIT}
                ).map(lambda v: items_of(v)[:UPCOMING_LIMIT]),
            },
            f"tournament {tournament_id}",
        )

        document = TournamentDetails(tournament=primary.value, **slots)
        policy = resolve(EntityKind.TOURNAMENT_DETAILS, tournament_id=tournament_id)
        return FetchResult.ok(Aggregate(document, policy))

    def tournament_overview(self, tournament_id: int) -> FetchResult:
        """Tournament with its last completed matches and top scorers."""
        primary = self.tournament_client.get_tournament(tournament_id)
        if self.primary_failed(primary):
            return self.primary_error(primary, "tournament")

        slots = self.fetch_slots(
            {
                "recent_matches": lambda: self.match_client.get_completed_matches(
                    {"tournament_id": tournament_id, "limit": RECENT_LIMIT}
                ).map(lambda v: items_of(v)[:RECENT_LIMIT]),
                "top_scorers": lambda: self.results_client.get_top_scorers(
                    tournament_id, TOP_SCORERS_LIMIT
                ).map(items_of),
            },
            f"tournament overview {tournament_id}",
        )

        document = TournamentOverview(tournament=primary.value, **slots)
        policy = resolve(EntityKind.TOURNAMENT_OVERVIEW, tournament_id=tournament_id)
        return FetchResult.ok(Aggregate(document, policy))

    def featured_tournaments(self) -> FetchResult:
        """
        Ongoing tournaments, each with its top four teams from the standings.
        """
        primary = self.tournament_client.get_tournaments(
            {"status": "ongoing", "limit": FEATURED_LIMIT}
        )
        if not primary.is_ok:
            return primary

        tournaments = [t for t in items_of(primary.value) if isinstance(t, dict)]
        standings = self.lookup_many(
            (t.get("id") for t in tournaments),
            lambda tid: self.results_client.get_standings(tid).map(items_of),
        )

        leaders: Dict[Any, List[Dict[str, Any]]] = {
            tid: [row for row in rows if isinstance(row, dict)][:FEATURED_TOP_TEAMS]
            for tid, rows in standings.items()
            if rows is not None
        }
        team_ids = [row.get("team_id") for rows in leaders.values() for row in rows]
        teams = self.lookup_many(team_ids, self.team_client.get_team)

        featured = []
        for tournament in tournaments:
            rows = leaders.get(tournament.get("id"))
            top_teams = None
            if rows is not None:
                top_teams = [
                    _with_standing(teams[row.get("team_id")], row)
                    for row in rows
                    if teams.get(row.get("team_id")) is not None
                ]
            featured.append(FeaturedTournament(tournament=tournament, top_teams=top_teams))

        return FetchResult.ok(Aggregate(featured, resolve(EntityKind.FEATURED_TOURNAMENTS)))

    def standings_with_teams(self, tournament_id: int) -> FetchResult:
        """Standings rows, each with the team's tournament statistics."""
        primary = self.results_client.get_standings(tournament_id)
        if not primary.is_ok:
            return self.primary_error(primary, "standings")

        rows = [row for row in items_of(primary.value) if isinstance(row, dict)]
        details = self.lookup_many(
            (row.get("team_id") for row in rows),
            lambda team_id: self.results_client.get_team_statistics(team_id, tournament_id),
        )
        merged = [{**row, "team_details": details.get(row.get("team_id"))} for row in rows]

        policy = resolve(EntityKind.STANDINGS_WITH_TEAMS, tournament_id=tournament_id)
        return FetchResult.ok(Aggregate(merged, policy))

    # ===== Single-call reads =====

    def tournament_list(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.passthrough(
            self.tournament_client.get_tournaments(filters),
            resolve(EntityKind.TOURNAMENT_LIST),
        )

    def standings(self, tournament_id: int) -> FetchResult:
        result = self.results_client.get_standings(tournament_id)
        if not result.is_ok:
            return self.primary_error(result, "standings")
        return self.passthrough(
            result, resolve(EntityKind.STANDINGS, tournament_id=tournament_id)
        )

    def tournament_statistics(self, tournament_id: int) -> FetchResult:
        result = self.results_client.get_tournament_statistics(tournament_id)
        if not result.is_ok:
            return self.primary_error(result, "tournament statistics")
        return self.passthrough(
            result, resolve(EntityKind.TOURNAMENT_STATISTICS, tournament_id=tournament_id)
        )

    def top_scorers(self, tournament_id: int, limit: int = 10) -> FetchResult:
        result = self.results_client.get_top_scorers(tournament_id, limit)
        if not result.is_ok:
            return self.primary_error(result, "tournament")
        return self.passthrough(
            result, resolve(EntityKind.TOP_SCORERS, tournament_id=tournament_id)
        )


def _with_standing(team: Dict[str, Any], row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        **team,
        "position": row.get("position"),
        "points": row.get("points"),
        "played": row.get("played"),
        "goal_difference": row.get("goal_difference", 0),
    }
