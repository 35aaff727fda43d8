"""Diff aircraft snapshots against the tracked-entity index."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Optional, Sequence

from flightwatch.models.air_traffic import NormalizedAircraft
from flightwatch.models.tracking import (
    EntityOperation,
    OperationKind,
    ReconciliationResult,
    TrackedEntity,
)

logger = logging.getLogger("flightwatch.reconciliation")


def _differs(entity: TrackedEntity, record: NormalizedAircraft) -> bool:
    return (
        entity.position != record.position
        or entity.heading != record.heading
        or entity.payload != record.payload
    )


class ReconciliationEngine:
    """Own the identifier -> TrackedEntity index and keep it in sync with snapshots.

    ``reconcile`` performs no I/O. The operations it returns are applied to a
    presenter by the caller, which also stores the handles returned for
    creates back onto the entities.
    """

    def __init__(self) -> None:
        self._entities: dict[str, TrackedEntity] = {}

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entities

    @property
    def tracked_ids(self) -> set[str]:
        return set(self._entities)

    def get(self, identifier: str) -> Optional[TrackedEntity]:
        return self._entities.get(identifier)

    def snapshot(self) -> dict[str, TrackedEntity]:
        """Copy of the index, for comparing state across cycles.

        Entities are copied; presenter handles are shared, not cloned.
        """

        return {key: replace(entity) for key, entity in self._entities.items()}

    def reconcile(self, records: Sequence[NormalizedAircraft]) -> ReconciliationResult:
        latest: dict[str, NormalizedAircraft] = {}
        for record in records:
            latest[record.identifier] = record

        result = ReconciliationResult()
        for identifier, record in latest.items():
            entity = self._entities.get(identifier)
            if entity is None:
                entity = TrackedEntity(
                    identifier=identifier,
                    position=record.position,
                    heading=record.heading,
                    payload=record.payload,
                )
                self._entities[identifier] = entity
                result.operations.append(EntityOperation(OperationKind.CREATE, entity))
                continue

            if not _differs(entity, record):
                result.unchanged += 1
                continue

            entity.position = record.position
            entity.heading = record.heading
            entity.payload = record.payload
            result.operations.append(EntityOperation(OperationKind.UPDATE, entity))

        for identifier in [key for key in self._entities if key not in latest]:
            entity = self._entities.pop(identifier)
            result.operations.append(EntityOperation(OperationKind.REMOVE, entity))

        logger.debug(
            "Reconciled %s records: %s created, %s updated, %s removed, %s unchanged",
            len(records),
            len(result.creates),
            len(result.updates),
            len(result.removes),
            result.unchanged,
        )
        return result

    def reset(self) -> ReconciliationResult:
        """Forget every tracked entity, returning the removes needed to clear markers."""

        result = ReconciliationResult(
            operations=[
                EntityOperation(OperationKind.REMOVE, entity)
                for entity in self._entities.values()
            ]
        )
        self._entities.clear()
        return result


__all__ = ["ReconciliationEngine"]
