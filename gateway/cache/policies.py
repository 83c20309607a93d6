"""
TTL and tag policy for every cached document kind.

TTL goes down as the underlying data changes faster: live matches get the
shortest TTL, finished matches the longest. Tags are namespaced by entity
kind and id so a write to one team or tournament only drops its own entries.
"""
import logging
from typing import Any, Dict, Optional

from config.settings import settings
from .core import CachePolicy, EntityKind

logger = logging.getLogger("cache.policies")

LIVE_STATUSES = frozenset({"in_progress", "live"})
COMPLETED_STATUSES = frozenset({"completed"})


# Policy table (TTL in seconds). "status_ttl" overrides "ttl" for matching
# statuses; tag templates whose ids are not supplied are skipped.
POLICY_TABLE: Dict[EntityKind, Dict[str, Any]] = {
    EntityKind.MATCH_DETAILS: {
        "ttl": 600,                   # scheduled / other
        "status_ttl": {
            "in_progress": 30,
            "live": 30,
            "completed": 3600,
        },
        "tags": ["matches", "match:{match_id}", "tournament:{tournament_id}"],
    },
    EntityKind.LIVE_MATCHES: {
        "ttl": 0,                     # real-time, never cached
        "tags": ["matches", "live_matches"],
    },
    EntityKind.MATCH_LIST: {
        "ttl": 180,
        "tags": ["matches"],
    },
    EntityKind.MATCH_EVENTS: {
        "ttl": 300,
        "tags": ["matches", "match:{match_id}"],
    },
    EntityKind.MATCHES_BY_DATE: {
        "ttl": 600,
        "tags": ["matches"],
    },
    EntityKind.UPCOMING_MATCHES: {
        "ttl": 120,
        "tags": ["matches"],
    },
    EntityKind.COMPLETED_MATCHES: {
        "ttl": 300,
        "tags": ["matches"],
    },
    EntityKind.TOURNAMENT_MATCHES: {
        "ttl": 300,
        "tags": ["matches", "tournament:{tournament_id}"],
    },
    EntityKind.TOURNAMENT_DETAILS: {
        "ttl": 600,
        "tags": [
            "tournaments",
            "tournament:{tournament_id}",
            "tournament:{tournament_id}:standings",
        ],
    },
    EntityKind.TOURNAMENT_LIST: {
        "ttl": 300,
        "tags": ["tournaments"],
    },
    EntityKind.TOURNAMENT_OVERVIEW: {
        "ttl": 300,
        "tags": ["tournaments", "tournament:{tournament_id}"],
    },
    EntityKind.FEATURED_TOURNAMENTS: {
        "ttl": 300,
        "tags": ["tournaments", "standings"],
    },
    EntityKind.TOURNAMENT_STATISTICS: {
        "ttl": 600,
        "tags": ["tournament:{tournament_id}", "tournament:{tournament_id}:standings"],
    },
    EntityKind.TEAM_PROFILE: {
        "ttl": 900,
        "tags": ["teams", "team:{team_id}"],
    },
    EntityKind.TEAM_OVERVIEW: {
        "ttl": 600,
        "tags": ["teams", "team:{team_id}"],
    },
    EntityKind.TEAM_SQUAD: {
        "ttl": 1200,
        "tags": ["teams", "team:{team_id}"],
    },
    EntityKind.HEAD_TO_HEAD: {
        "ttl": 1800,
        "tags": ["teams", "team:{team1_id}", "team:{team2_id}"],
    },
    EntityKind.STANDINGS: {
        "ttl": 180,
        "tags": ["standings", "tournament:{tournament_id}:standings"],
    },
    EntityKind.STANDINGS_WITH_TEAMS: {
        "ttl": 300,
        "tags": ["standings", "tournament:{tournament_id}:standings"],
    },
    EntityKind.SEARCH: {
        "ttl": 300,
        "tags": ["search"],
    },
    EntityKind.TOP_SCORERS: {
        "ttl": 600,
        "tags": ["tournament:{tournament_id}:standings"],
    },
}


def normalize_status(status: Optional[str]) -> str:
    """Lower-case a status value, treating None as an empty string."""
    if status is None:
        return ""
    return str(status).strip().lower()


def is_live(status: Optional[str]) -> bool:
    return normalize_status(status) in LIVE_STATUSES


def is_completed(status: Optional[str]) -> bool:
    return normalize_status(status) in COMPLETED_STATUSES


def _format_tags(templates, ids: Dict[str, Any]) -> frozenset:
    tags = set()
    for template in templates:
        try:
            tag = template.format(**ids)
        except KeyError:
            continue
        # A supplied-but-None id would render "team:None"
        if "None" in tag.split(":"):
            continue
        tags.add(tag)
    return frozenset(tags)


def resolve(kind: EntityKind, status: Optional[str] = None, **ids: Any) -> CachePolicy:
    """
    Map a document kind (and, for matches, its status) to a CachePolicy.

    Args:
        kind: The kind of document being cached
        status: Domain status of the primary entity, if it has one
        **ids: Identifiers used to render tag templates (match_id, team_id, ...)

    Returns:
        CachePolicy with the TTL in seconds and the rendered tag set
    """
    config = POLICY_TABLE.get(kind)
    if config is None:
        logger.warning(f"No cache policy for {kind}, using default TTL")
        return CachePolicy(ttl=settings.default_cache_ttl)

    ttl = config["ttl"]
    status_key = normalize_status(status)
    if status_key:
        ttl = config.get("status_ttl", {}).get(status_key, ttl)

    return CachePolicy(ttl=ttl, tags=_format_tags(config.get("tags", []), ids))
