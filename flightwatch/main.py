from __future__ import annotations

import contextlib
import logging
import time

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from flightwatch.api import api_router
from flightwatch.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("flightwatch")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the upstream HTTP client for the lifetime of the app."""

    app.state.upstream_client = httpx.AsyncClient(timeout=settings.opensky_timeout)
    logger.info(
        "Flights proxy forwarding to %s (CORS origins: %s)",
        settings.opensky_base_url,
        ", ".join(settings.cors_origins) or "none",
    )

    try:
        yield
    finally:
        await app.state.upstream_client.aclose()


app = FastAPI(title="flightwatch", lifespan=lifespan)

# The map page may be served from a different origin than the proxy
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request, including the viewport asked for on flight lookups."""

    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    bbox = request.query_params.get("bbox")
    logger.info(
        "%s %s%s -> %s in %.1f ms",
        request.method,
        request.url.path,
        f" bbox={bbox}" if bbox else "",
        response.status_code,
        elapsed_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Service description")
def read_root() -> dict[str, str]:
    """Describe where the proxy lives and what it forwards to."""

    return {
        "service": "flightwatch",
        "flights": "/api/flights?bbox=south,north,west,east",
        "upstream": settings.opensky_base_url,
    }
