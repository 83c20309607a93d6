"""
Cache invalidation driven by write-side domain events.

The owning services publish events such as "sports.match.updated"; each
event type maps to the tags whose cached documents it makes stale.
"""
import logging
from typing import Any, Dict, List, Optional

from gateway.cache.manager import CacheManager

logger = logging.getLogger("cache.invalidation")


# Event type -> tag templates. Templates whose ids are missing from the
# payload are skipped.
EVENT_TAGS: Dict[str, List[str]] = {
    # Tournament events
    "sports.tournament.created": ["tournaments"],
    "sports.tournament.updated": ["tournament:{tournament_id}", "tournaments"],
    "sports.tournament.deleted": ["tournament:{tournament_id}", "tournaments"],
    "sports.tournament.started": ["tournament:{tournament_id}", "tournaments"],
    "sports.tournament.completed": ["tournament:{tournament_id}", "tournaments"],
    "sports.tournament.status.changed": ["tournament:{tournament_id}", "tournaments"],
    "sports.tournament.recalculated": [
        "tournament:{tournament_id}:standings",
        "standings",
    ],

    # Match events
    "sports.match.created": [
        "matches",
        "tournament:{tournament_id}",
        "tournament:{tournament_id}:standings",
    ],
    "sports.match.updated": ["match:{match_id}", "matches"],
    "sports.match.deleted": [
        "match:{match_id}",
        "matches",
        "tournament:{tournament_id}",
        "tournament:{tournament_id}:standings",
    ],
    "sports.match.started": ["match:{match_id}", "matches", "live_matches"],
    "sports.match.completed": [
        "match:{match_id}",
        "matches",
        "live_matches",
        "tournament:{tournament_id}",
        "tournament:{tournament_id}:standings",
    ],
    "sports.match.status.changed": ["match:{match_id}", "matches", "live_matches"],
    "sports.match.event.recorded": ["match:{match_id}"],

    # Team events
    "sports.team.created": ["teams"],
    "sports.team.updated": ["team:{team_id}", "teams"],
    "sports.team.deleted": ["team:{team_id}", "teams"],
    "sports.player.created": ["team:{team_id}"],
    "sports.player.updated": ["team:{team_id}"],
    "sports.player.deleted": ["team:{team_id}"],

    # Results events
    "sports.standings.updated": ["tournament:{tournament_id}:standings", "standings"],
    "sports.standings.recalculated": ["tournament:{tournament_id}:standings", "standings"],
    "sports.statistics.updated": ["tournament:{tournament_id}:standings"],

    # Venues appear inside match documents
    "sports.venue.created": ["matches"],
    "sports.venue.updated": ["matches"],
    "sports.venue.deleted": ["matches"],
}

# Payload field aliases, e.g. a match event carries "id" for the match
_ID_ALIASES = {
    "sports.match.": {"id": "match_id"},
    "sports.tournament.": {"id": "tournament_id"},
    "sports.team.": {"id": "team_id"},
}


def tags_for_event(event_type: str, payload: Optional[Dict[str, Any]] = None) -> List[str]:
    """
    Resolve the tags made stale by one event.

    Returns:
        Sorted list of tags; empty for event types that touch no cache
    """
    templates = EVENT_TAGS.get(event_type)
    if not templates:
        return []

    ids = {k: v for k, v in (payload or {}).items() if v is not None}
    for prefix, aliases in _ID_ALIASES.items():
        if event_type.startswith(prefix):
            for field, canonical in aliases.items():
                if field in ids and canonical not in ids:
                    ids[canonical] = ids[field]

    tags = set()
    for template in templates:
        try:
            tags.add(template.format(**ids))
        except KeyError:
            continue
    return sorted(tags)


class CacheInvalidator:
    """Applies domain events to a CacheManager."""

    def __init__(self, cache: CacheManager):
        self._cache = cache

    def handle(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> int:
        """
        Invalidate everything `event_type` makes stale.

        Returns:
            Number of cache entries removed
        """
        tags = tags_for_event(event_type, payload)
        if not tags:
            logger.debug(f"No cache invalidation for event {event_type}")
            return 0

        removed = self._cache.invalidate_tags(*tags)
        logger.info(f"Event {event_type}: invalidated {removed} entries ({', '.join(tags)})")
        return removed
