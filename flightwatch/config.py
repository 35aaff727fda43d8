"""Configuration settings for the flightwatch tracker."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_REFRESH_INTERVAL_SECONDS = 10


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def _get_list(env_var: str, default: str) -> list[str]:
    """Split a comma-separated environment variable, dropping blanks."""

    raw = os.getenv(env_var, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    flightwatch_env: str = os.getenv("FLIGHTWATCH_ENV", "local")
    log_level: str = os.getenv("FLIGHTWATCH_LOG_LEVEL", "INFO")

    # Upstream flight-state provider (used by the proxy)
    opensky_base_url: str = os.getenv(
        "OPENSKY_BASE_URL",
        "https://opensky-network.org/api/states/all",
    )
    opensky_timeout: float = float(os.getenv("OPENSKY_TIMEOUT", "10.0"))
    # Browser origins allowed to call the proxy
    cors_origins: list[str] = field(
        default_factory=lambda: _get_list("FLIGHTWATCH_CORS_ORIGINS", "*")
    )

    # Tracker client (used by the snapshot fetcher and scheduler)
    proxy_base_url: str = os.getenv("FLIGHTWATCH_PROXY_BASE_URL", "http://localhost:3000")
    fetch_timeout: float = float(os.getenv("FLIGHTWATCH_FETCH_TIMEOUT", "10.0"))
    auto_refresh: bool = _get_bool("FLIGHTWATCH_AUTO_REFRESH", default=True)
    # Raw value; the scheduler coerces it to a positive whole number of seconds
    refresh_interval: str | None = os.getenv("FLIGHTWATCH_REFRESH_INTERVAL")


settings = Settings()

__all__ = ["DEFAULT_REFRESH_INTERVAL_SECONDS", "Settings", "settings"]
