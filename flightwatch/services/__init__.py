"""Service-layer helpers for flightwatch."""

from .normalizer import UNKNOWN_PLACEHOLDER, format_number, normalize_record, normalize_records
from .presenter import EntityPresenter, InMemoryPresenter, Marker, apply_operations
from .reconciliation import ReconciliationEngine
from .scheduler import (
    CycleOutcome,
    PeriodicTask,
    RefreshScheduler,
    RefreshState,
    RefreshTrigger,
    coerce_interval,
    should_fetch_on_viewport_change,
)

__all__ = [
    "CycleOutcome",
    "EntityPresenter",
    "InMemoryPresenter",
    "Marker",
    "PeriodicTask",
    "ReconciliationEngine",
    "RefreshScheduler",
    "RefreshState",
    "RefreshTrigger",
    "UNKNOWN_PLACEHOLDER",
    "apply_operations",
    "coerce_interval",
    "format_number",
    "normalize_record",
    "normalize_records",
    "should_fetch_on_viewport_change",
]
