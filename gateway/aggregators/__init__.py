"""
Aggregators: fan out to the upstream services and merge the results into
typed composite documents with a cache policy attached.
"""
from .models import (
    FeaturedTournament,
    HeadToHead,
    MatchCard,
    MatchDetails,
    SearchResults,
    TeamOverview,
    TeamProfile,
    TeamSquad,
    TournamentDetails,
    TournamentOverview,
)
from .base import BaseAggregator
from .match import MatchAggregator
from .tournament import TournamentAggregator
from .team import TeamAggregator
from .search import SearchAggregator, SEARCH_TYPES

__all__ = [
    # Documents
    "FeaturedTournament",
    "HeadToHead",
    "MatchCard",
    "MatchDetails",
    "SearchResults",
    "TeamOverview",
    "TeamProfile",
    "TeamSquad",
    "TournamentDetails",
    "TournamentOverview",
    # Aggregators
    "BaseAggregator",
    "MatchAggregator",
    "TournamentAggregator",
    "TeamAggregator",
    "SearchAggregator",
    "SEARCH_TYPES",
]
