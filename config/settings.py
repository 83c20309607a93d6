"""Configuration management using pydantic-settings."""
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables."""

    # Upstream services (read-only public APIs)
    tournament_service_url: str = "http://localhost:8002"
    team_service_url: str = "http://localhost:8003"
    match_service_url: str = "http://localhost:8004"
    results_service_url: str = "http://localhost:8005"

    # Upstream HTTP behaviour
    upstream_timeout: float = 5.0
    upstream_connect_timeout: float = 2.0
    upstream_retries: int = 3
    max_concurrent_requests: int = 10

    # Parallel fan-out for independent slots of one aggregation
    max_fanout_workers: int = 6

    # Cache settings
    cache_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    cache_key_prefix: str = "gateway"
    default_cache_ttl: int = 300
    coalesce_timeout: float = 30.0

    # Public API rate limiting (requests per client per minute)
    rate_limit_per_minute: int = 60

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
