"""Flights proxy: forward viewport queries to the OpenSky states API."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from flightwatch.config import settings
from flightwatch.models.air_traffic import BoundingBox
from flightwatch.models.proxy import ErrorResponse

router = APIRouter(prefix="/api", tags=["flights"])

logger = logging.getLogger("flightwatch.proxy")

MISSING_BBOX = "Missing 'bbox' query param. Expected 'south,north,west,east'."
INVALID_BBOX = "Invalid 'bbox' param; expected 4 comma-separated numbers."
SERVER_ERROR = "Server error"


def get_upstream_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream client created in the application lifespan."""

    return request.app.state.upstream_client


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


@router.get(
    "/flights",
    summary="Aircraft states within a bounding box",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)
async def get_flights(
    bbox: str | None = Query(default=None, description="south,north,west,east"),
    client: httpx.AsyncClient = Depends(get_upstream_client),
) -> JSONResponse:
    """Validate the bbox and relay the provider's state vectors unchanged."""

    if not bbox:
        return _error(status.HTTP_400_BAD_REQUEST, MISSING_BBOX)
    try:
        box = BoundingBox.parse(bbox)
    except ValueError:
        logger.info("Rejected bbox %r", bbox)
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_BBOX)

    try:
        return await _relay(client, box)
    except Exception:
        logger.exception("Error fetching flights for bbox %s", bbox)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)


async def _relay(client: httpx.AsyncClient, box: BoundingBox) -> JSONResponse:
    params = {
        "lamin": box.south,
        "lamax": box.north,
        "lomin": box.west,
        "lomax": box.east,
    }
    try:
        response = await client.get(settings.opensky_base_url, params=params)
    except httpx.RequestError as exc:
        logger.error("Error fetching flights: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)

    if not response.is_success:
        logger.warning(
            "OpenSky returned HTTP %s for bbox %s", response.status_code, box.to_query()
        )
        return _error(
            status.HTTP_502_BAD_GATEWAY, f"Upstream error {response.status_code}"
        )

    # Rendering rejects NaN/Infinity that the JSON parser lets through
    try:
        return JSONResponse(content=response.json())
    except ValueError as exc:
        logger.error("Failed to relay OpenSky response: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)


__all__ = ["router", "get_upstream_client"]
