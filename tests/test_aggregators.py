"""
Tests for the aggregators: slot plans, degradation and policies.

Clients are mocked at the FetchResult level (see conftest.py).
"""
import pytest

from gateway.aggregators import (
    MatchAggregator,
    SearchAggregator,
    TeamAggregator,
    TournamentAggregator,
)
from gateway.aggregators.models import MatchDetails, SearchResults
from gateway.clients import FetchResult
from gateway.errors import ErrorKind

ok = FetchResult.ok


def down(message="connection refused"):
    return FetchResult.err(ErrorKind.UNAVAILABLE, message)


def missing():
    return FetchResult.err(ErrorKind.NOT_FOUND, "not found", status=404)


def teams_by_id(team_id):
    return ok({"id": team_id, "name": f"Team {team_id}"})


# =============================================================================
# Match aggregation
# =============================================================================

@pytest.fixture
def match_aggregator(match_client, team_client, tournament_client):
    team_client.get_team.side_effect = teams_by_id
    tournament_client.get_venue.return_value = ok({"id": 5, "name": "Stadium"})
    match_client.get_match_events.return_value = ok({"data": [{"type": "goal"}]})
    match_client.get_match_lineups.return_value = ok({"home": [], "away": []})
    match_client.get_match_statistics.return_value = ok({"possession": [55, 45]})
    return MatchAggregator(match_client, team_client, tournament_client)


def match(status, **extra):
    return {
        "id": 1,
        "status": status,
        "tournament_id": 3,
        "home_team_id": 10,
        "away_team_id": 20,
        "venue_id": 5,
        **extra,
    }


class TestMatchDetails:

    def test_scheduled_match_skips_lineups_and_statistics(self, match_aggregator, match_client):
        match_client.get_match.return_value = ok(match("scheduled"))

        result = match_aggregator.match_details(1)

        assert result.is_ok
        document = result.value.document
        assert isinstance(document, MatchDetails)
        assert document.home_team["name"] == "Team 10"
        assert document.away_team["name"] == "Team 20"
        assert document.venue["name"] == "Stadium"
        assert document.events == [{"type": "goal"}]
        assert document.lineups is None
        assert document.statistics is None
        match_client.get_match_lineups.assert_not_called()
        match_client.get_match_statistics.assert_not_called()
        assert result.value.policy.ttl == 600

    def test_live_match_fetches_lineups(self, match_aggregator, match_client):
        match_client.get_match.return_value = ok(match("in_progress"))

        result = match_aggregator.match_details(1)

        assert result.value.document.lineups == {"home": [], "away": []}
        match_client.get_match_statistics.assert_not_called()
        assert result.value.policy.ttl == 30

    def test_completed_match_fetches_everything(self, match_aggregator, match_client):
        match_client.get_match.return_value = ok(match("completed"))

        result = match_aggregator.match_details(1)

        document = result.value.document
        assert document.lineups is not None
        assert document.statistics == {"possession": [55, 45]}
        assert result.value.policy.ttl == 3600
        assert result.value.policy.tags == frozenset({"matches", "match:1", "tournament:3"})

    def test_venue_failure_degrades_to_none(
        self, match_aggregator, match_client, tournament_client
    ):
        match_client.get_match.return_value = ok(match("scheduled"))
        tournament_client.get_venue.return_value = down()

        result = match_aggregator.match_details(1)

        assert result.is_ok
        assert result.value.document.venue is None
        assert result.value.document.home_team is not None

    def test_raising_slot_degrades_to_none(self, match_aggregator, match_client, team_client):
        match_client.get_match.return_value = ok(match("scheduled"))
        team_client.get_team.side_effect = RuntimeError("bug")

        result = match_aggregator.match_details(1)

        assert result.is_ok
        assert result.value.document.home_team is None
        assert result.value.document.away_team is None

    def test_no_venue_id_means_no_venue_call(
        self, match_aggregator, match_client, tournament_client
    ):
        match_client.get_match.return_value = ok(match("scheduled", venue_id=None))

        match_aggregator.match_details(1)

        tournament_client.get_venue.assert_not_called()

    def test_missing_match_issues_no_secondary_calls(
        self, match_aggregator, match_client, team_client
    ):
        match_client.get_match.return_value = missing()

        result = match_aggregator.match_details(404)

        assert result.error is ErrorKind.NOT_FOUND
        assert result.message == "Match not found"
        team_client.get_team.assert_not_called()
        match_client.get_match_events.assert_not_called()

    def test_unavailable_match_service(self, match_aggregator, match_client):
        match_client.get_match.return_value = down("timeout")

        result = match_aggregator.match_details(1)

        assert result.error is ErrorKind.UNAVAILABLE

    def test_malformed_primary_is_bad_response(self, match_aggregator, match_client):
        match_client.get_match.return_value = ok(["not", "a", "match"])
        assert match_aggregator.match_details(1).error is ErrorKind.BAD_RESPONSE


class TestMatchLists:

    def test_live_matches_fetch_each_team_once(self, match_aggregator, match_client, team_client):
        match_client.get_live_matches.return_value = ok({
            "data": [
                {"id": 1, "home_team_id": 10, "away_team_id": 20},
                {"id": 2, "home_team_id": 20, "away_team_id": 30},
            ]
        })

        result = match_aggregator.live_matches()

        cards = result.value.document
        assert [card.away_team["id"] for card in cards] == [20, 30]
        assert cards[0].events == [{"type": "goal"}]
        assert team_client.get_team.call_count == 3
        assert result.value.policy.ttl == 0

    def test_matches_by_date_without_events(self, match_aggregator, match_client):
        match_client.get_matches_by_date.return_value = ok(
            [{"id": 1, "home_team_id": 10, "away_team_id": 99}]
        )

        cards = match_aggregator.matches_by_date("2024-05-01").value.document

        assert cards[0].home_team["id"] == 10
        assert cards[0].events is None
        match_client.get_match_events.assert_not_called()

    def test_passthrough_list(self, match_aggregator, match_client):
        match_client.get_matches.return_value = ok({"data": [], "meta": {"page": 1}})

        result = match_aggregator.match_list({"page": 1})

        assert result.value.document == {"data": [], "meta": {"page": 1}}
        assert result.value.policy.ttl == 180

    def test_passthrough_error(self, match_aggregator, match_client):
        match_client.get_upcoming_matches.return_value = down()
        assert match_aggregator.upcoming_matches().error is ErrorKind.UNAVAILABLE


# =============================================================================
# Tournament aggregation
# =============================================================================

@pytest.fixture
def tournament_aggregator(tournament_client, match_client, results_client, team_client):
    tournament_client.get_tournament.return_value = ok({"id": 42, "name": "Spring Cup"})
    tournament_client.get_tournament_teams.return_value = ok([{"id": 10}, {"id": 20}])
    results_client.get_standings.return_value = ok([
        {"team_id": 10, "position": 1, "points": 9, "played": 3},
        {"team_id": 20, "position": 2, "points": 6, "played": 3},
    ])
    match_client.get_upcoming_matches.return_value = ok([{"id": i} for i in range(8)])
    team_client.get_team.side_effect = teams_by_id
    return TournamentAggregator(tournament_client, match_client, results_client, team_client)


class TestTournamentAggregator:

    def test_details(self, tournament_aggregator):
        result = tournament_aggregator.tournament_details(42)

        document = result.value.document
        assert document.tournament["name"] == "Spring Cup"
        assert len(document.teams) == 2
        assert len(document.upcoming_matches) == 5
        assert "tournament:42:standings" in result.value.policy.tags

    def test_details_with_standings_down(self, tournament_aggregator, results_client):
        results_client.get_standings.return_value = down()

        result = tournament_aggregator.tournament_details(42)

        assert result.is_ok
        assert result.value.document.standings is None
        assert result.value.document.teams is not None

    def test_missing_tournament(self, tournament_aggregator, tournament_client, results_client):
        tournament_client.get_tournament.return_value = missing()

        result = tournament_aggregator.tournament_details(42)

        assert result.error is ErrorKind.NOT_FOUND
        results_client.get_standings.assert_not_called()

    def test_featured_tournaments_merge_standings(
        self, tournament_aggregator, tournament_client
    ):
        tournament_client.get_tournaments.return_value = ok({"data": [{"id": 42}]})

        featured = tournament_aggregator.featured_tournaments().value.document

        assert len(featured) == 1
        top = featured[0].top_teams
        assert [team["id"] for team in top] == [10, 20]
        assert top[0]["points"] == 9
        assert top[0]["goal_difference"] == 0

    def test_featured_without_standings(
        self, tournament_aggregator, tournament_client, results_client
    ):
        tournament_client.get_tournaments.return_value = ok([{"id": 42}])
        results_client.get_standings.return_value = down()

        featured = tournament_aggregator.featured_tournaments().value.document

        assert featured[0].top_teams is None

    def test_standings_with_teams(self, tournament_aggregator, results_client):
        results_client.get_team_statistics.side_effect = (
            lambda team_id, tournament_id: ok({"goals": team_id})
            if team_id == 10 else down()
        )

        rows = tournament_aggregator.standings_with_teams(42).value.document

        assert rows[0]["team_details"] == {"goals": 10}
        assert rows[1]["team_details"] is None


# =============================================================================
# Team aggregation
# =============================================================================

@pytest.fixture
def team_aggregator(team_client, match_client, results_client):
    team_client.get_team.side_effect = teams_by_id
    team_client.get_team_players.return_value = ok([{"id": i} for i in range(1, 13)])
    team_client.get_team_statistics.return_value = ok({"wins": 3})
    team_client.get_player_statistics.side_effect = lambda pid: ok({"goals": pid})
    match_client.get_team_matches.return_value = ok([{"id": 100}])
    match_client.get_upcoming_matches.return_value = ok([])
    match_client.get_matches.return_value = ok([{"id": 7}])
    results_client.get_team_form.return_value = ok(["W", "W", "D"])
    results_client.get_head_to_head.return_value = ok({"team1_wins": 2, "team2_wins": 1})
    return TeamAggregator(team_client, match_client, results_client)


class TestTeamAggregator:

    def test_profile_limits_player_statistics(self, team_aggregator, team_client):
        result = team_aggregator.team_profile(10)

        document = result.value.document
        assert len(document.players) == 12
        assert len(document.player_statistics) == 10
        assert team_client.get_player_statistics.call_count == 10
        assert document.form == ["W", "W", "D"]
        assert result.value.policy.tags == frozenset({"teams", "team:10"})

    def test_profile_without_players(self, team_aggregator, team_client):
        team_client.get_team_players.return_value = down()

        document = team_aggregator.team_profile(10).value.document

        assert document.players is None
        assert document.player_statistics is None
        team_client.get_player_statistics.assert_not_called()

    def test_squad_player_statistics_may_fail(self, team_aggregator, team_client):
        team_client.get_player_statistics.side_effect = (
            lambda pid: down() if pid == 1 else ok({"goals": pid})
        )

        players = team_aggregator.team_squad(10).value.document.players

        assert players[0]["statistics"] is None
        assert players[1]["statistics"] == {"goals": 2}

    def test_squad_is_required(self, team_aggregator, team_client):
        team_client.get_team_players.return_value = down()
        assert team_aggregator.team_squad(10).error is ErrorKind.UNAVAILABLE

    def test_head_to_head(self, team_aggregator):
        result = team_aggregator.head_to_head(10, 20)

        document = result.value.document
        assert document.head_to_head["team1_wins"] == 2
        assert document.team2["id"] == 20
        assert document.recent_matches == [{"id": 7}]
        assert result.value.policy.tags == frozenset({"teams", "team:10", "team:20"})

    def test_head_to_head_missing(self, team_aggregator, results_client, team_client):
        results_client.get_head_to_head.return_value = missing()

        result = team_aggregator.head_to_head(10, 20)

        assert result.error is ErrorKind.NOT_FOUND
        team_client.get_team.assert_not_called()

    def test_overview_passes_tournament(self, team_aggregator, team_client):
        team_aggregator.team_overview(10, tournament_id=42)
        team_client.get_team_statistics.assert_called_once_with(10, 42)


# =============================================================================
# Search
# =============================================================================

@pytest.fixture
def search_aggregator(tournament_client, team_client, match_client):
    tournament_client.get_tournaments.return_value = ok([{"id": 1, "name": "Cup"}])
    team_client.search_teams.return_value = ok([{"id": i} for i in range(30)])
    match_client.get_matches.return_value = ok([])
    return SearchAggregator(tournament_client, team_client, match_client)


class TestSearch:

    def test_groups_are_truncated_and_empty_groups_are_none(self, search_aggregator):
        document = search_aggregator.search("cup", limit=5).value.document

        assert isinstance(document, SearchResults)
        assert document.tournaments == [{"id": 1, "name": "Cup"}]
        assert len(document.teams) == 5
        assert document.matches is None

    def test_failed_service_contributes_nothing(self, search_aggregator, team_client):
        team_client.search_teams.return_value = down()

        result = search_aggregator.search("cup")

        assert result.is_ok
        assert result.value.document.teams is None
        assert result.value.document.tournaments is not None

    def test_type_filter(self, search_aggregator, tournament_client, match_client):
        search_aggregator.search("rovers", search_type="teams")

        tournament_client.get_tournaments.assert_not_called()
        match_client.get_matches.assert_not_called()
