"""Data models for flightwatch."""

from .air_traffic import BoundingBox, DisplayPayload, NormalizedAircraft
from .proxy import ErrorResponse
from .tracking import EntityOperation, OperationKind, ReconciliationResult, TrackedEntity

__all__ = [
    "BoundingBox",
    "DisplayPayload",
    "EntityOperation",
    "ErrorResponse",
    "NormalizedAircraft",
    "OperationKind",
    "ReconciliationResult",
    "TrackedEntity",
]
