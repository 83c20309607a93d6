"""
Match aggregations: match page, live board, and match lists with teams.
"""
from functools import partial
from typing import Any, Dict, List, Optional

from gateway.cache.core import Aggregate, EntityKind
from gateway.cache.policies import is_completed, is_live, resolve
from gateway.clients import (
    FetchResult,
    MatchServiceClient,
    TeamServiceClient,
    TournamentServiceClient,
    items_of,
)
from .base import BaseAggregator, Task
from .models import MatchCard, MatchDetails


class MatchAggregator(BaseAggregator):
    """
    Combines the match service with team and venue data.

    The match itself is the primary entity; its status decides which extra
    slots are worth fetching and how long the result may be cached.
    """

    name = "match"

    def __init__(
        self,
        match_client: MatchServiceClient,
        team_client: TeamServiceClient,
        tournament_client: TournamentServiceClient,
        max_workers: Optional[int] = None,
    ):
        super().__init__(max_workers)
        self.match_client = match_client
        self.team_client = team_client
        self.tournament_client = tournament_client

    def match_details(self, match_id: int) -> FetchResult:
        """
        Aggregate one match with teams, venue, events, lineups and statistics.

        Returns:
            FetchResult[Aggregate[MatchDetails]]; the match service's error
            when the match itself cannot be fetched
        """
        primary = self.match_client.get_match(match_id)
        if self.primary_failed(primary):
            self.logger.info(f"Match {match_id} unavailable: {primary.message}")
            return self.primary_error(primary, "match")

        match = primary.value
        status = match.get("status")
        slots = self.fetch_slots(self._details_plan(match_id, match), f"match {match_id}")

        policy = resolve(
            EntityKind.MATCH_DETAILS,
            status,
            match_id=match_id,
            tournament_id=match.get("tournament_id"),
        )
        return FetchResult.ok(Aggregate(MatchDetails(match=match, **slots), policy))

    def _details_plan(self, match_id: int, match: Dict[str, Any]) -> Dict[str, Task]:
        """Pick the secondary slots for a match based on its status."""
        status = match.get("status")
        plan: Dict[str, Task] = {
            "events": lambda: self.match_client.get_match_events(match_id).map(items_of),
        }
        if match.get("home_team_id"):
            plan["home_team"] = partial(self.team_client.get_team, match["home_team_id"])
        if match.get("away_team_id"):
            plan["away_team"] = partial(self.team_client.get_team, match["away_team_id"])
        if match.get("venue_id"):
            plan["venue"] = partial(self.tournament_client.get_venue, match["venue_id"])
        # Lineups exist once a match has kicked off
        if is_live(status) or is_completed(status):
            plan["lineups"] = partial(self.match_client.get_match_lineups, match_id)
        if is_completed(status):
            plan["statistics"] = partial(self.match_client.get_match_statistics, match_id)
        return plan

    def live_matches(self) -> FetchResult:
        """All live matches with both teams and their events. Never cached."""
        primary = self.match_client.get_live_matches()
        if not primary.is_ok:
            return primary

        cards = self._cards(items_of(primary.value), with_events=True)
        return FetchResult.ok(Aggregate(cards, resolve(EntityKind.LIVE_MATCHES)))

    def matches_by_date(self, date: str, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        primary = self.match_client.get_matches_by_date(date, filters)
        if not primary.is_ok:
            return primary

        cards = self._cards(items_of(primary.value))
        return FetchResult.ok(Aggregate(cards, resolve(EntityKind.MATCHES_BY_DATE)))

    def tournament_matches(
        self, tournament_id: int, filters: Optional[Dict[str, Any]] = None
    ) -> FetchResult:
        primary = self.match_client.get_tournament_matches(tournament_id, filters)
        if not primary.is_ok:
            return self.primary_error(primary, "tournament")

        cards = self._cards(items_of(primary.value))
        policy = resolve(EntityKind.TOURNAMENT_MATCHES, tournament_id=tournament_id)
        return FetchResult.ok(Aggregate(cards, policy))

    def _cards(self, matches: List[Dict[str, Any]], with_events: bool = False) -> List[MatchCard]:
        """Resolve the teams of every match, fetching each team once."""
        team_ids = []
        for match in matches:
            team_ids.extend([match.get("home_team_id"), match.get("away_team_id")])
        teams = self.lookup_many(team_ids, self.team_client.get_team)

        events: Dict[Any, Any] = {}
        if with_events:
            events = self.lookup_many(
                (m.get("id") for m in matches),
                lambda match_id: self.match_client.get_match_events(match_id).map(items_of),
            )

        return [
            MatchCard(
                match=match,
                home_team=teams.get(match.get("home_team_id")),
                away_team=teams.get(match.get("away_team_id")),
                events=events.get(match.get("id")) if with_events else None,
            )
            for match in matches
        ]

    # ===== Single-call reads =====

    def match_list(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.passthrough(
            self.match_client.get_matches(filters), resolve(EntityKind.MATCH_LIST)
        )

    def match_events(self, match_id: int) -> FetchResult:
        result = self.match_client.get_match_events(match_id)
        if result.error is not None:
            return self.primary_error(result, "match")
        return self.passthrough(
            result, resolve(EntityKind.MATCH_EVENTS, match_id=match_id)
        )

    def upcoming_matches(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.passthrough(
            self.match_client.get_upcoming_matches(filters),
            resolve(EntityKind.UPCOMING_MATCHES),
        )

    def completed_matches(self, filters: Optional[Dict[str, Any]] = None) -> FetchResult:
        return self.passthrough(
            self.match_client.get_completed_matches(filters),
            resolve(EntityKind.COMPLETED_MATCHES),
        )
