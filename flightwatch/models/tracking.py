"""Tracked-entity state and the operations produced by reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Any, Optional

from flightwatch.models.air_traffic import DisplayPayload


@dataclass
class TrackedEntity:
    """Durable per-aircraft state kept between refresh cycles."""

    identifier: str
    position: tuple[float, float]
    heading: Optional[float]
    payload: DisplayPayload
    # Owned by the presenter; stored but never interpreted here
    handle: Any = None


class OperationKind(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass
class EntityOperation:
    """One presenter instruction for a single tracked entity."""

    kind: OperationKind
    entity: TrackedEntity

    @property
    def identifier(self) -> str:
        return self.entity.identifier


@dataclass
class ReconciliationResult:
    """Operations needed to bring the presenter in line with a snapshot."""

    operations: list[EntityOperation] = field(default_factory=list)
    unchanged: int = 0

    def _of_kind(self, kind: OperationKind) -> list[EntityOperation]:
        return [op for op in self.operations if op.kind is kind]

    @property
    def creates(self) -> list[EntityOperation]:
        return self._of_kind(OperationKind.CREATE)

    @property
    def updates(self) -> list[EntityOperation]:
        return self._of_kind(OperationKind.UPDATE)

    @property
    def removes(self) -> list[EntityOperation]:
        return self._of_kind(OperationKind.REMOVE)


__all__ = ["EntityOperation", "OperationKind", "ReconciliationResult", "TrackedEntity"]
