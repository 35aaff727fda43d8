"""Snapshot fetcher for viewport-scoped aircraft states served by the flights proxy."""

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import Any

import httpx

from flightwatch.config import settings
from flightwatch.models.air_traffic import BoundingBox

logger = logging.getLogger("flightwatch.ingestors.snapshot")


class FailureKind(str, enum.Enum):
    """Why a snapshot could not be produced this cycle."""

    VALIDATION = "validation"  # proxy rejected the bbox (400)
    TRANSPORT = "transport"  # connection failure or timeout
    UPSTREAM = "upstream"  # provider error relayed by the proxy (502) or other non-2xx
    INTERNAL = "internal"  # proxy failed unexpectedly (500)
    PARSE = "parse"  # body is not JSON or has the wrong shape


_STATUS_KINDS: dict[int, FailureKind] = {
    400: FailureKind.VALIDATION,
    500: FailureKind.INTERNAL,
    502: FailureKind.UPSTREAM,
}


@dataclass
class Snapshot:
    """A successful fetch; ``states`` may legitimately be empty."""

    bbox: BoundingBox
    states: list[Any]

    @property
    def count(self) -> int:
        return len(self.states)


@dataclass
class FetchFailure:
    """A failed fetch. Never treated as an empty snapshot."""

    kind: FailureKind
    message: str
    status_code: int | None = None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return f"HTTP {response.status_code}"


class SnapshotFetcher:
    """Request aircraft snapshots for a bounding box from the flights proxy."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.proxy_base_url).rstrip("/")
        self.timeout = timeout or settings.fetch_timeout
        self.transport = transport

    def build_url(self, bbox: BoundingBox) -> str:
        return f"{self.base_url}/api/flights?bbox={bbox.to_query()}"

    async def fetch(self, bbox: BoundingBox) -> Snapshot | FetchFailure:
        url = self.build_url(bbox)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("Snapshot request timed out: %s", exc)
            return FetchFailure(FailureKind.TRANSPORT, f"timeout: {exc}")
        except httpx.RequestError as exc:
            logger.warning("Snapshot request failed: %s", exc)
            return FetchFailure(FailureKind.TRANSPORT, str(exc))

        if not response.is_success:
            kind = _STATUS_KINDS.get(response.status_code, FailureKind.UPSTREAM)
            message = _error_message(response)
            logger.warning(
                "Flights proxy returned HTTP %s (%s): %s",
                response.status_code,
                kind.value,
                message,
            )
            return FetchFailure(kind, message, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Failed to parse snapshot JSON response: %s", exc)
            return FetchFailure(FailureKind.PARSE, "response body is not valid JSON")

        if not isinstance(payload, dict):
            logger.warning("Unexpected snapshot payload type: %s", type(payload).__name__)
            return FetchFailure(FailureKind.PARSE, "response body is not a JSON object")

        states = payload.get("states")
        if states is None:
            states = []
        elif not isinstance(states, list):
            logger.warning("Snapshot 'states' is not a list: %s", type(states).__name__)
            return FetchFailure(FailureKind.PARSE, "'states' is not a list")

        logger.debug("Fetched %s aircraft states for bbox %s", len(states), bbox.to_query())
        return Snapshot(bbox=bbox, states=states)


__all__ = ["FailureKind", "FetchFailure", "Snapshot", "SnapshotFetcher"]
