"""
Core cache data structures.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Optional


class EntityKind(Enum):
    """Kinds of cached documents, each with its own TTL and tag policy."""
    MATCH_DETAILS = "match_details"            # status dependent: 30s / 1h / 10m
    LIVE_MATCHES = "live_matches"              # never cached
    MATCH_LIST = "match_list"
    MATCH_EVENTS = "match_events"
    MATCHES_BY_DATE = "matches_by_date"
    UPCOMING_MATCHES = "upcoming_matches"
    COMPLETED_MATCHES = "completed_matches"
    TOURNAMENT_MATCHES = "tournament_matches"
    TOURNAMENT_DETAILS = "tournament_details"
    TOURNAMENT_LIST = "tournament_list"
    TOURNAMENT_OVERVIEW = "tournament_overview"
    FEATURED_TOURNAMENTS = "featured_tournaments"
    TOURNAMENT_STATISTICS = "tournament_statistics"
    TEAM_PROFILE = "team_profile"
    TEAM_OVERVIEW = "team_overview"
    TEAM_SQUAD = "team_squad"
    HEAD_TO_HEAD = "head_to_head"
    STANDINGS = "standings"
    STANDINGS_WITH_TEAMS = "standings_with_teams"
    SEARCH = "search"
    TOP_SCORERS = "top_scorers"


@dataclass(frozen=True)
class CachePolicy:
    """TTL and invalidation tags for one aggregated document."""
    ttl: int
    tags: FrozenSet[str] = frozenset()

    @property
    def cacheable(self) -> bool:
        return self.ttl > 0


@dataclass(frozen=True)
class Aggregate:
    """A merged document together with the policy it should be cached under."""
    document: Any
    policy: CachePolicy


@dataclass
class CacheEntry:
    """
    One stored value. Created on a miss, never mutated afterwards.
    """
    key: str
    value: bytes
    tags: FrozenSet[str] = frozenset()
    expires_at: float = 0.0  # time.monotonic() deadline

    @property
    def ttl_remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


@dataclass
class CacheMeta:
    """
    Metadata about a cache access, included in API responses.
    """
    key: str
    cached: bool
    ttl_seconds: Optional[int] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
