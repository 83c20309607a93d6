"""
Upstream service clients. Each call returns a FetchResult and never raises.
"""
from .result import FetchResult
from .base import ServiceClient, items_of
from .tournament import TournamentServiceClient
from .team import TeamServiceClient
from .match import MatchServiceClient
from .results import ResultsServiceClient

__all__ = [
    "FetchResult",
    "ServiceClient",
    "items_of",
    "TournamentServiceClient",
    "TeamServiceClient",
    "MatchServiceClient",
    "ResultsServiceClient",
]
