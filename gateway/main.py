"""
Tournament Gateway - public read API

Aggregated tournament, team and match documents assembled from the
tournament, team, match and results services, served through a
read-through cache.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from gateway import responses
from gateway.aggregators import SEARCH_TYPES
from gateway.errors import GatewayError, RateLimitedError, RequestValidationFailed
from gateway.services import Services, build_services

load_dotenv()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger("gateway.main")

APP_NAME = "Tournament Gateway"
APP_VERSION = "v1.0.0"

TOURNAMENT_STATUSES = "^(upcoming|ongoing|completed)$"
MATCH_STATUSES = "^(scheduled|in_progress|live|completed|cancelled|postponed)$"
SORT_ORDERS = "^(asc|desc)$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

app = FastAPI(
    title=APP_NAME,
    description="Aggregated tournament data from the tournament, team, match and results services",
    version=APP_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


_services: Optional[Services] = None


def get_services() -> Services:
    """Service graph shared by all requests, built on first use."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def enforce_rate_limit(request: Request, services: Services = Depends(get_services)) -> None:
    client_ip = request.client.host if request.client else "unknown"
    allowed, retry_after = services.rate_limiter.check(client_ip)
    if not allowed:
        logger.warning(f"Rate limit exceeded for {client_ip}")
        raise RateLimitedError(retry_after)


def refresh_flag(
    refresh: bool = Query(False, description="Bypass the cache read and fetch fresh data"),
) -> bool:
    return refresh


def serve(
    services: Services,
    route: str,
    loader: Callable,
    message: str,
    params: Optional[Dict[str, Any]] = None,
    refresh: bool = False,
):
    data, meta = services.cache.fetch(route, loader, params=params, force_refresh=refresh)
    return responses.success(data, message, meta=meta)


def parse_date(value: str, field: str = "date") -> str:
    """Reject dates that are not real calendar days in YYYY-MM-DD form."""
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise RequestValidationFailed(
            "Invalid date format. Use YYYY-MM-DD",
            errors=[{"field": field, "message": "Invalid date format. Use YYYY-MM-DD"}],
        )
    return value


# =============================================================================
# Error handlers
# =============================================================================

@app.exception_handler(GatewayError)
def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return responses.error(
        exc.message,
        status_code=exc.status_code,
        errors=exc.errors,
        error_code=exc.error_code,
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return responses.error(
        RequestValidationFailed.default_message,
        status_code=422,
        errors=errors,
        error_code=RequestValidationFailed.error_code,
    )


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return responses.error(str(exc.detail), status_code=exc.status_code)


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return responses.error("Internal server error", status_code=500, error_code="INTERNAL_ERROR")


# =============================================================================
# Service endpoints
# =============================================================================

@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "gateway", "cache_backend": settings.cache_backend}


@app.get("/cache/stats")
def cache_stats(services: Services = Depends(get_services)):
    """Get cache statistics."""
    return responses.success(services.cache.get_stats(), "Cache statistics retrieved")


@app.post("/cache/stats/reset")
def reset_cache_stats(services: Services = Depends(get_services)):
    services.cache.reset_stats()
    return responses.success(services.cache.get_stats(), "Cache statistics reset")


class InvalidationEvent(BaseModel):
    event_type: str = Field(..., min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)


@app.post("/cache/invalidate")
def invalidate_for_event(event: InvalidationEvent, services: Services = Depends(get_services)):
    """Apply a write-side domain event to the cache."""
    removed = services.invalidator.handle(event.event_type, event.payload)
    return responses.success(
        {"event_type": event.event_type, "removed": removed},
        "Cache invalidated",
    )


@app.delete("/cache/tags/{tag}")
def invalidate_tag(tag: str, services: Services = Depends(get_services)):
    removed = services.cache.invalidate_tags(tag)
    return responses.success({"tag": tag, "removed": removed}, "Cache invalidated")


@app.delete("/cache")
def clear_cache(services: Services = Depends(get_services)):
    """Drop every cached document."""
    removed = services.cache.clear()
    return responses.success({"removed": removed}, "Cache cleared")


# =============================================================================
# Public read endpoints (rate limited)
# =============================================================================

public = APIRouter(dependencies=[Depends(enforce_rate_limit)])


# -- Tournaments ------------------------------------------------------------

@public.get("/tournaments")
def list_tournaments(
    status: Optional[str] = Query(None, pattern=TOURNAMENT_STATUSES),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: Optional[str] = Query(None, max_length=50),
    order: Optional[str] = Query(None, pattern=SORT_ORDERS),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    filters = {"status": status, "page": page, "limit": limit, "sort": sort, "order": order}
    return serve(
        services,
        "tournaments",
        lambda: services.tournaments.tournament_list(filters),
        "Tournaments retrieved successfully",
        params=filters,
        refresh=refresh,
    )


@public.get("/tournaments/featured")
def featured_tournaments(
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        "featured_tournaments",
        services.tournaments.featured_tournaments,
        "Featured tournaments retrieved successfully",
        refresh=refresh,
    )


@public.get("/tournaments/{tournament_id}")
def tournament_details(
    tournament_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    """Tournament with its teams, standings and next matches."""
    return serve(
        services,
        f"tournament_details:{tournament_id}",
        lambda: services.tournaments.tournament_details(tournament_id),
        "Tournament details retrieved successfully",
        refresh=refresh,
    )


@public.get("/tournaments/{tournament_id}/overview")
def tournament_overview(
    tournament_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"tournament_overview:{tournament_id}",
        lambda: services.tournaments.tournament_overview(tournament_id),
        "Tournament overview retrieved successfully",
        refresh=refresh,
    )


@public.get("/tournaments/{tournament_id}/matches")
def tournament_matches(
    tournament_id: int = Path(..., ge=1),
    status: Optional[str] = Query(None, pattern=MATCH_STATUSES),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    filters = {"status": status, "page": page, "limit": limit}
    return serve(
        services,
        f"tournament_matches:{tournament_id}",
        lambda: services.matches.tournament_matches(tournament_id, filters),
        "Tournament matches retrieved successfully",
        params=filters,
        refresh=refresh,
    )


@public.get("/tournaments/{tournament_id}/standings")
def tournament_standings(
    tournament_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"standings:{tournament_id}",
        lambda: services.tournaments.standings(tournament_id),
        "Standings retrieved successfully",
        refresh=refresh,
    )


@public.get("/tournaments/{tournament_id}/standings/teams")
def standings_with_teams(
    tournament_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"standings_with_teams:{tournament_id}",
        lambda: services.tournaments.standings_with_teams(tournament_id),
        "Standings retrieved successfully",
        refresh=refresh,
    )


@public.get("/tournaments/{tournament_id}/statistics")
def tournament_statistics(
    tournament_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"tournament_statistics:{tournament_id}",
        lambda: services.tournaments.tournament_statistics(tournament_id),
        "Tournament statistics retrieved successfully",
        refresh=refresh,
    )


@public.get("/tournaments/{tournament_id}/top-scorers")
def top_scorers(
    tournament_id: int = Path(..., ge=1),
    limit: int = Query(10, ge=1, le=50),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"top_scorers:{tournament_id}",
        lambda: services.tournaments.top_scorers(tournament_id, limit),
        "Top scorers retrieved successfully",
        params={"limit": limit},
        refresh=refresh,
    )


# -- Teams ------------------------------------------------------------------

@public.get("/teams/{team_id}")
def team_profile(
    team_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    """Team with players, statistics, recent and upcoming matches."""
    return serve(
        services,
        f"team_profile:{team_id}",
        lambda: services.teams.team_profile(team_id),
        "Team profile retrieved successfully",
        refresh=refresh,
    )


@public.get("/teams/{team_id}/overview")
def team_overview(
    team_id: int = Path(..., ge=1),
    tournament_id: Optional[int] = Query(None, ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"team_overview:{team_id}",
        lambda: services.teams.team_overview(team_id, tournament_id),
        "Team overview retrieved successfully",
        params={"tournament_id": tournament_id},
        refresh=refresh,
    )


@public.get("/teams/{team_id}/squad")
def team_squad(
    team_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"team_squad:{team_id}",
        lambda: services.teams.team_squad(team_id),
        "Team squad retrieved successfully",
        refresh=refresh,
    )


@public.get("/teams/{team_id}/head-to-head/{other_team_id}")
def head_to_head(
    team_id: int = Path(..., ge=1),
    other_team_id: int = Path(..., ge=1),
    tournament_id: Optional[int] = Query(None, ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    if team_id == other_team_id:
        raise RequestValidationFailed(
            "A team cannot be compared with itself",
            errors=[{"field": "other_team_id", "message": "Must differ from team_id"}],
        )
    return serve(
        services,
        f"head_to_head:{team_id}:{other_team_id}",
        lambda: services.teams.head_to_head(team_id, other_team_id, tournament_id),
        "Head-to-head retrieved successfully",
        params={"tournament_id": tournament_id},
        refresh=refresh,
    )


# -- Matches ----------------------------------------------------------------
# Fixed paths are registered before /matches/{match_id}.

@public.get("/matches")
def list_matches(
    tournament_id: Optional[int] = Query(None, ge=1),
    team_id: Optional[int] = Query(None, ge=1),
    status: Optional[str] = Query(None, pattern=MATCH_STATUSES),
    date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: Optional[str] = Query(None, max_length=50),
    order: Optional[str] = Query(None, pattern=SORT_ORDERS),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    if date is not None:
        parse_date(date, "date")
    filters = {
        "tournament_id": tournament_id,
        "team_id": team_id,
        "status": status,
        "date": date,
        "page": page,
        "limit": limit,
        "sort": sort,
        "order": order,
    }
    return serve(
        services,
        "matches",
        lambda: services.matches.match_list(filters),
        "Matches retrieved successfully",
        params=filters,
        refresh=refresh,
    )


@public.get("/matches/live")
def live_matches(services: Services = Depends(get_services)):
    """Matches in progress. Always fetched fresh."""
    return serve(
        services,
        "live_matches",
        services.matches.live_matches,
        "Live matches retrieved successfully",
    )


@public.get("/matches/upcoming")
def upcoming_matches(
    tournament_id: Optional[int] = Query(None, ge=1),
    limit: int = Query(20, ge=1, le=100),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    filters = {"tournament_id": tournament_id, "limit": limit}
    return serve(
        services,
        "upcoming_matches",
        lambda: services.matches.upcoming_matches(filters),
        "Upcoming matches retrieved successfully",
        params=filters,
        refresh=refresh,
    )


@public.get("/matches/completed")
def completed_matches(
    tournament_id: Optional[int] = Query(None, ge=1),
    limit: int = Query(20, ge=1, le=100),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    filters = {"tournament_id": tournament_id, "limit": limit}
    return serve(
        services,
        "completed_matches",
        lambda: services.matches.completed_matches(filters),
        "Completed matches retrieved successfully",
        params=filters,
        refresh=refresh,
    )


@public.get("/matches/date/{date}")
def matches_by_date(
    date: str,
    tournament_id: Optional[int] = Query(None, ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    parse_date(date)
    filters = {"tournament_id": tournament_id}
    return serve(
        services,
        f"matches_by_date:{date}",
        lambda: services.matches.matches_by_date(date, filters),
        "Matches retrieved successfully",
        params=filters,
        refresh=refresh,
    )


@public.get("/matches/{match_id}")
def match_details(
    match_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    """Match with teams, venue, events and (depending on status) lineups and statistics."""
    return serve(
        services,
        f"match_details:{match_id}",
        lambda: services.matches.match_details(match_id),
        "Match details retrieved successfully",
        refresh=refresh,
    )


@public.get("/matches/{match_id}/events")
def match_events(
    match_id: int = Path(..., ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    return serve(
        services,
        f"match_events:{match_id}",
        lambda: services.matches.match_events(match_id),
        "Match events retrieved successfully",
        refresh=refresh,
    )


# -- Search -----------------------------------------------------------------

@public.get("/search")
def search(
    q: str = Query(..., min_length=2, max_length=100, description="Search query"),
    search_type: str = Query("all", alias="type", pattern="^(" + "|".join(SEARCH_TYPES) + ")$"),
    limit: int = Query(20, ge=1, le=50),
    tournament_id: Optional[int] = Query(None, ge=1),
    refresh: bool = Depends(refresh_flag),
    services: Services = Depends(get_services),
):
    """Search tournaments, teams and matches."""
    query = q.strip()
    if len(query) < 2:
        raise RequestValidationFailed(
            "Search query must be at least 2 characters",
            errors=[{"field": "q", "message": "Must contain at least 2 non-blank characters"}],
        )
    params = {"q": query, "type": search_type, "limit": limit, "tournament_id": tournament_id}
    return serve(
        services,
        "search",
        lambda: services.search.search(query, search_type, limit, tournament_id),
        "Search results retrieved successfully",
        params=params,
        refresh=refresh,
    )


app.include_router(public)
