"""Liveness endpoint for the flights proxy."""

from urllib.parse import urlsplit

from fastapi import APIRouter, Request

from flightwatch.config import settings

router = APIRouter(tags=["health"])


@router.get("/healthz", summary="Proxy liveness")
def health_check(request: Request) -> dict[str, str | bool]:
    """Report the environment, the upstream host and whether the upstream client is up."""
    client = getattr(request.app.state, "upstream_client", None)
    return {
        "status": "ok",
        "env": settings.flightwatch_env,
        "upstream_host": urlsplit(settings.opensky_base_url).netloc,
        "upstream_client": client is not None and not client.is_closed,
    }
