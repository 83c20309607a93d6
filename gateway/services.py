"""
Wiring of clients, cache and aggregators into one object the HTTP layer uses.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from config.settings import settings
from gateway.aggregators import (
    MatchAggregator,
    SearchAggregator,
    TeamAggregator,
    TournamentAggregator,
)
from gateway.cache import CacheManager, CacheStore, create_store
from gateway.clients import (
    MatchServiceClient,
    ResultsServiceClient,
    TeamServiceClient,
    TournamentServiceClient,
)
from gateway.invalidation import CacheInvalidator
from gateway.rate_limiter import RateLimiter

logger = logging.getLogger("gateway.services")


@dataclass
class Services:
    cache: CacheManager
    matches: MatchAggregator
    tournaments: TournamentAggregator
    teams: TeamAggregator
    search: SearchAggregator
    invalidator: CacheInvalidator
    rate_limiter: RateLimiter


def build_services(
    store: Optional[CacheStore] = None,
    tournament_client: Optional[TournamentServiceClient] = None,
    team_client: Optional[TeamServiceClient] = None,
    match_client: Optional[MatchServiceClient] = None,
    results_client: Optional[ResultsServiceClient] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> Services:
    """
    Build the service graph. Anything not passed in is created from settings.
    """
    if store is None:
        store = create_store(
            settings.cache_backend,
            redis_url=settings.redis_url,
            prefix=settings.cache_key_prefix,
        )
        logger.info(f"Using {settings.cache_backend} cache store")

    tournament_client = tournament_client or TournamentServiceClient()
    team_client = team_client or TeamServiceClient()
    match_client = match_client or MatchServiceClient()
    results_client = results_client or ResultsServiceClient()

    cache = CacheManager(
        store,
        coalesce_timeout=settings.coalesce_timeout,
        key_prefix=settings.cache_key_prefix,
    )

    return Services(
        cache=cache,
        matches=MatchAggregator(match_client, team_client, tournament_client),
        tournaments=TournamentAggregator(
            tournament_client, match_client, results_client, team_client
        ),
        teams=TeamAggregator(team_client, match_client, results_client),
        search=SearchAggregator(tournament_client, team_client, match_client),
        invalidator=CacheInvalidator(cache),
        rate_limiter=rate_limiter or RateLimiter(max_requests=settings.rate_limit_per_minute),
    )
