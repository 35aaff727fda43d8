"""Models for viewport-scoped aircraft snapshots."""

from __future__ import annotations

from html import escape
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BoundingBox(BaseModel):
    """Geographic rectangle of the visible map area, in degrees."""

    south: float = Field(..., description="Southern latitude bound")
    north: float = Field(..., description="Northern latitude bound")
    west: float = Field(..., description="Western longitude bound")
    east: float = Field(..., description="Eastern longitude bound")

    model_config = ConfigDict(frozen=True)

    def to_query(self) -> str:
        """Render as the ``bbox`` query value, each bound to 4 decimals."""

        return ",".join(
            f"{value:.4f}" for value in (self.south, self.north, self.west, self.east)
        )

    @classmethod
    def parse(cls, raw: str) -> "BoundingBox":
        """Parse ``south,north,west,east``; every part must be a finite number."""

        parts = raw.split(",")
        if len(parts) != 4:
            raise ValueError(f"expected 4 comma-separated numbers, got {len(parts)}")
        values: list[float] = []
        for part in parts:
            value = float(part)
            if not math.isfinite(value):
                raise ValueError(f"non-finite bbox value: {part!r}")
            values.append(value)
        south, north, west, east = values
        return cls(south=south, north=north, west=west, east=east)


class DisplayPayload(BaseModel):
    """Rendered text shown in an aircraft's marker popup."""

    callsign: str = Field(..., description="Trimmed callsign or uppercased identifier")
    origin_country: str = Field(..., description="Origin country or placeholder")
    altitude: str = Field(..., description="Geometric altitude in meters, as text")
    speed: str = Field(..., description="Ground speed in m/s, as text")
    heading: str = Field(..., description="True track in degrees, as text")

    model_config = ConfigDict(frozen=True)

    def to_html(self) -> str:
        return (
            "<div>"
            f"<strong>{escape(self.callsign)}</strong><br/>"
            f"Country: {escape(self.origin_country)}<br/>"
            f"Alt: {self.altitude} m<br/>"
            f"Spd: {self.speed} m/s<br/>"
            f"Hdg: {self.heading}°"
            "</div>"
        )


class NormalizedAircraft(BaseModel):
    """A valid aircraft record ready for reconciliation."""

    identifier: str = Field(..., description="ICAO24 address, used verbatim as the key")
    position: tuple[float, float] = Field(..., description="(latitude, longitude)")
    heading: Optional[float] = Field(
        default=None, description="True track in degrees when reported"
    )
    payload: DisplayPayload

    model_config = ConfigDict(frozen=True)


__all__ = ["BoundingBox", "DisplayPayload", "NormalizedAircraft"]
