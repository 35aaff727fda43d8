"""Data ingestors for flightwatch."""

from .snapshot import FailureKind, FetchFailure, Snapshot, SnapshotFetcher

__all__ = [
    "FailureKind",
    "FetchFailure",
    "Snapshot",
    "SnapshotFetcher",
]
