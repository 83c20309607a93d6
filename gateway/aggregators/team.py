"""
Team aggregations: profile, overview, squad and head-to-head.
"""
from typing import Any, Dict, List, Optional

from gateway.cache.core import Aggregate, EntityKind
from gateway.cache.policies import resolve
from gateway.clients import (
    FetchResult,
    MatchServiceClient,
    ResultsServiceClient,
    TeamServiceClient,
    items_of,
)
from .base import BaseAggregator
from .models import HeadToHead, TeamOverview, TeamProfile, TeamSquad

RECENT_MATCHES_LIMIT = 10
UPCOMING_LIMIT = 5
FORM_LIMIT = 5
PROFILE_PLAYER_STATS_LIMIT = 10
KEY_PLAYERS_LIMIT = 5
HEAD_TO_HEAD_MATCHES_LIMIT = 5


class TeamAggregator(BaseAggregator):
    name = "team"

    def __init__(
        self,
        team_client: TeamServiceClient,
        match_client: MatchServiceClient,
        results_client: ResultsServiceClient,
        max_workers: Optional[int] = None,
    ):
        super().__init__(max_workers)
        self.team_client = team_client
        self.match_client = match_client
        self.results_client = results_client

    def team_profile(self, team_id: int) -> FetchResult:
        """
        Team with squad, statistics, recent and upcoming matches, and form.

        Player statistics depend on the squad, so they are a second stage
        limited to the first ten players.
        """
        primary = self.team_client.get_team(team_id)
        if self.primary_failed(primary):
            return self.primary_error(primary, "team")

        slots = self.fetch_slots(
            {
                "players": lambda: self.team_client.get_team_players(team_id).map(items_of),
                "statistics": lambda: self.team_client.get_team_statistics(team_id),
                "recent_matches": lambda: self.match_client.get_team_matches(
                    team_id,
                    {"limit": RECENT_MATCHES_LIMIT, "sort": "date", "order": "desc"},
                ).map(items_of),
                "form": lambda: self.results_client.get_team_form(team_id, FORM_LIMIT),
                "upcoming_matches": lambda: self.match_client.get_upcoming_matches(
                    {"team_id": team_id, "limit": UPCOMING_LIMIT}
                ).map(lambda v: items_of(v)[:UPCOMING_LIMIT]),
            },
            f"team {team_id}",
        )

        players = slots.get("players")
        player_statistics = None
        if players is not None:
            key_players = _players(players)[:PROFILE_PLAYER_STATS_LIMIT]
            stats = self.lookup_many(
                (p.get("id") for p in key_players), self.team_client.get_player_statistics
            )
            player_statistics = [
                {**player, "statistics": stats[player.get("id")]}
                for player in key_players
                if stats.get(player.get("id")) is not None
            ]

        document = TeamProfile(team=primary.value, player_statistics=player_statistics, **slots)
        return FetchResult.ok(Aggregate(document, resolve(EntityKind.TEAM_PROFILE, team_id=team_id)))

    def team_overview(self, team_id: int, tournament_id: Optional[int] = None) -> FetchResult:
        """Team with statistics (per tournament when given), form and key players."""
        primary = self.team_client.get_team(team_id)
        if self.primary_failed(primary):
            return self.primary_error(primary, "team")

        slots = self.fetch_slots(
            {
                "statistics": lambda: self.team_client.get_team_statistics(team_id, tournament_id),
                "form": lambda: self.results_client.get_team_form(team_id, FORM_LIMIT),
                "key_players": lambda: self.team_client.get_team_players(team_id).map(
                    lambda v: items_of(v)[:KEY_PLAYERS_LIMIT]
                ),
            },
            f"team overview {team_id}",
        )

        document = TeamOverview(team=primary.value, **slots)
        policy = resolve(EntityKind.TEAM_OVERVIEW, team_id=team_id, tournament_id=tournament_id)
        return FetchResult.ok(Aggregate(document, policy))

    def head_to_head(
        self, team1_id: int, team2_id: int, tournament_id: Optional[int] = None
    ) -> FetchResult:
        """
        Head-to-head record of two teams plus both teams and their recent meetings.
        """
        primary = self.results_client.get_head_to_head(team1_id, team2_id, tournament_id)
        if not primary.is_ok:
            return self.primary_error(primary, "head-to-head record")

        slots = self.fetch_slots(
            {
                "team1": lambda: self.team_client.get_team(team1_id),
                "team2": lambda: self.team_client.get_team(team2_id),
                "recent_matches": lambda: self.match_client.get_matches(
                    {
                        "team1_id": team1_id,
                        "team2_id": team2_id,
                        "tournament_id": tournament_id,
                        "limit": HEAD_TO_HEAD_MATCHES_LIMIT,
                    }
                ).map(items_of),
            },
            f"head-to-head {team1_id}/{team2_id}",
        )

        document = HeadToHead(head_to_head=primary.value, **slots)
        policy = resolve(EntityKind.HEAD_TO_HEAD, team1_id=team1_id, team2_id=team2_id)
        return FetchResult.ok(Aggregate(document, policy))

    def team_squad(self, team_id: int) -> FetchResult:
        """
        Team with every player and each player's statistics.

        The squad list is required: without it there is nothing to show.
        """
        primary = self.team_client.get_team(team_id)
        if self.primary_failed(primary):
            return self.primary_error(primary, "team")

        squad = self.team_client.get_team_players(team_id)
        if not squad.is_ok:
            self.logger.info(f"Squad for team {team_id} unavailable: {squad.message}")
            return self.primary_error(squad, "squad")

        players = _players(squad.value)
        stats = self.lookup_many(
            (p.get("id") for p in players), self.team_client.get_player_statistics
        )
        detailed = [{**player, "statistics": stats.get(player.get("id"))} for player in players]

        document = TeamSquad(team=primary.value, players=detailed)
        return FetchResult.ok(Aggregate(document, resolve(EntityKind.TEAM_SQUAD, team_id=team_id)))


def _players(value: Any) -> List[Dict[str, Any]]:
    return [p for p in items_of(value) if isinstance(p, dict)]
