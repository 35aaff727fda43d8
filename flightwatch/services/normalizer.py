"""Turn raw OpenSky state vectors into records the reconciliation engine can track."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
import logging
import math
from typing import Any, Iterable, Optional

from flightwatch.models.air_traffic import DisplayPayload, NormalizedAircraft

logger = logging.getLogger("flightwatch.normalizer")

UNKNOWN_PLACEHOLDER = "—"

# Positions within an OpenSky state vector
ICAO24 = 0
CALLSIGN = 1
ORIGIN_COUNTRY = 2
LONGITUDE = 5
LATITUDE = 6
VELOCITY = 9
TRUE_TRACK = 10
GEO_ALTITUDE = 13


def _finite_number(value: Any) -> Optional[float]:
    # bool is an int subclass but never a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _field(entry: list[Any] | tuple[Any, ...], index: int) -> Any:
    return entry[index] if len(entry) > index else None


def format_number(value: Any) -> str:
    """Render a measurement rounded to a whole number, or the placeholder.

    Halves round away from zero, so 234.5 renders as "235".
    """

    number = _finite_number(value)
    if number is None:
        return UNKNOWN_PLACEHOLDER
    rounded = Decimal(number).to_integral_value(rounding=ROUND_HALF_UP)
    return f"{rounded:f}"


def build_display_payload(
    identifier: str,
    callsign_raw: Any,
    origin_country: Any,
    altitude: Any,
    velocity: Any,
    true_track: Any,
) -> DisplayPayload:
    callsign = callsign_raw.strip() if isinstance(callsign_raw, str) else ""
    country = origin_country if isinstance(origin_country, str) and origin_country else ""
    return DisplayPayload(
        callsign=callsign or identifier.upper(),
        origin_country=country or UNKNOWN_PLACEHOLDER,
        altitude=format_number(altitude),
        speed=format_number(velocity),
        heading=format_number(true_track),
    )


def normalize_record(entry: Any) -> Optional[NormalizedAircraft]:
    """Normalize one state vector; ``None`` when it lacks an identifier or position."""

    if not isinstance(entry, (list, tuple)):
        return None

    identifier = _field(entry, ICAO24)
    latitude = _finite_number(_field(entry, LATITUDE))
    longitude = _finite_number(_field(entry, LONGITUDE))
    if not isinstance(identifier, str) or not identifier:
        return None
    if latitude is None or longitude is None:
        return None

    true_track = _field(entry, TRUE_TRACK)
    payload = build_display_payload(
        identifier,
        _field(entry, CALLSIGN),
        _field(entry, ORIGIN_COUNTRY),
        _field(entry, GEO_ALTITUDE),
        _field(entry, VELOCITY),
        true_track,
    )
    return NormalizedAircraft(
        identifier=identifier,
        position=(latitude, longitude),
        heading=_finite_number(true_track),
        payload=payload,
    )


def normalize_records(states: Iterable[Any]) -> list[NormalizedAircraft]:
    """Normalize a snapshot in arrival order, skipping invalid records."""

    records: list[NormalizedAircraft] = []
    skipped = 0
    for entry in states:
        record = normalize_record(entry)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.debug("Skipped %s invalid aircraft records", skipped)
    return records


__all__ = [
    "UNKNOWN_PLACEHOLDER",
    "build_display_payload",
    "format_number",
    "normalize_record",
    "normalize_records",
]
