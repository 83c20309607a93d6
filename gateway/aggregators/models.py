"""
Composite documents produced by the aggregators.

Each slot is Optional: None means the upstream call for that slot failed or
was skipped by the status plan. A document with None slots is still a valid
result and is cached like any other.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class MatchDetails:
    """Everything shown on a match page."""
    match: Dict[str, Any]
    home_team: Optional[Dict[str, Any]] = None
    away_team: Optional[Dict[str, Any]] = None
    venue: Optional[Dict[str, Any]] = None
    events: Optional[List[Dict[str, Any]]] = None
    lineups: Optional[Any] = None      # only fetched for live/completed matches
    statistics: Optional[Any] = None   # only fetched for completed matches


@dataclass
class MatchCard:
    """A match in a list, with both teams resolved."""
    match: Dict[str, Any]
    home_team: Optional[Dict[str, Any]] = None
    away_team: Optional[Dict[str, Any]] = None
    events: Optional[List[Dict[str, Any]]] = None


@dataclass
class TournamentDetails:
    tournament: Dict[str, Any]
    teams: Optional[List[Dict[str, Any]]] = None
    standings: Optional[List[Dict[str, Any]]] = None
    upcoming_matches: Optional[List[Dict[str, Any]]] = None


@dataclass
class TournamentOverview:
    tournament: Dict[str, Any]
    recent_matches: Optional[List[Dict[str, Any]]] = None
    top_scorers: Optional[List[Dict[str, Any]]] = None


@dataclass
class FeaturedTournament:
    tournament: Dict[str, Any]
    top_teams: Optional[List[Dict[str, Any]]] = None


@dataclass
class TeamProfile:
    team: Dict[str, Any]
    players: Optional[List[Dict[str, Any]]] = None
    player_statistics: Optional[List[Dict[str, Any]]] = None
    statistics: Optional[Any] = None
    recent_matches: Optional[List[Dict[str, Any]]] = None
    form: Optional[Any] = None
    upcoming_matches: Optional[List[Dict[str, Any]]] = None


@dataclass
class TeamOverview:
    team: Dict[str, Any]
    statistics: Optional[Any] = None
    form: Optional[Any] = None
    key_players: Optional[List[Dict[str, Any]]] = None


@dataclass
class HeadToHead:
    head_to_head: Any
    team1: Optional[Dict[str, Any]] = None
    team2: Optional[Dict[str, Any]] = None
    recent_matches: Optional[List[Dict[str, Any]]] = None


@dataclass
class TeamSquad:
    team: Dict[str, Any]
    players: List[Dict[str, Any]]


@dataclass
class SearchResults:
    """Search hits grouped by type. A group is None when it has no hits."""
    tournaments: Optional[List[Dict[str, Any]]] = None
    teams: Optional[List[Dict[str, Any]]] = None
    matches: Optional[List[Dict[str, Any]]] = None
