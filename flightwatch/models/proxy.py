"""Response models for the flights proxy."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error payload returned by the proxy for every non-2xx response."""

    error: str = Field(..., description="Human-readable failure description")


__all__ = ["ErrorResponse"]
