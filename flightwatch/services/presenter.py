"""Presenter boundary: apply reconciliation operations to visual markers."""

from __future__ import annotations

from dataclasses import dataclass
import itertools
import logging
from typing import Any, Optional, Protocol

from flightwatch.models.air_traffic import DisplayPayload
from flightwatch.models.tracking import OperationKind, ReconciliationResult

logger = logging.getLogger("flightwatch.presenter")


class EntityPresenter(Protocol):
    """Renders markers. Calls are synchronous and must not suspend."""

    def create(
        self,
        identifier: str,
        position: tuple[float, float],
        heading: Optional[float],
        payload: DisplayPayload,
    ) -> Any: ...

    def update(
        self,
        handle: Any,
        position: tuple[float, float],
        heading: Optional[float],
        payload: DisplayPayload,
    ) -> None: ...

    def remove(self, handle: Any) -> None: ...


def apply_operations(result: ReconciliationResult, presenter: EntityPresenter) -> None:
    """Replay ``result`` against ``presenter``, storing handles from creates."""

    for op in result.operations:
        entity = op.entity
        if op.kind is OperationKind.CREATE:
            entity.handle = presenter.create(
                entity.identifier, entity.position, entity.heading, entity.payload
            )
        elif op.kind is OperationKind.UPDATE:
            presenter.update(entity.handle, entity.position, entity.heading, entity.payload)
        else:
            presenter.remove(entity.handle)


@dataclass
class Marker:
    """Headless stand-in for a rotated map marker with a popup."""

    marker_id: int
    identifier: str
    position: tuple[float, float]
    rotation: float
    popup_html: str


class InMemoryPresenter:
    """Keep markers in a dict; used by headless runs and tests."""

    def __init__(self) -> None:
        self.markers: dict[int, Marker] = {}
        self._ids = itertools.count(1)

    def create(
        self,
        identifier: str,
        position: tuple[float, float],
        heading: Optional[float],
        payload: DisplayPayload,
    ) -> int:
        marker_id = next(self._ids)
        self.markers[marker_id] = Marker(
            marker_id=marker_id,
            identifier=identifier,
            position=position,
            rotation=heading if heading is not None else 0.0,
            popup_html=payload.to_html(),
        )
        return marker_id

    def update(
        self,
        handle: int,
        position: tuple[float, float],
        heading: Optional[float],
        payload: DisplayPayload,
    ) -> None:
        marker = self.markers.get(handle)
        if marker is None:
            logger.warning("Update for unknown marker %s ignored", handle)
            return
        marker.position = position
        # A missing heading keeps the last rotation
        if heading is not None:
            marker.rotation = heading
        marker.popup_html = payload.to_html()

    def remove(self, handle: int) -> None:
        if self.markers.pop(handle, None) is None:
            logger.warning("Remove for unknown marker %s ignored", handle)

    def by_identifier(self, identifier: str) -> Optional[Marker]:
        for marker in self.markers.values():
            if marker.identifier == identifier:
                return marker
        return None


__all__ = ["EntityPresenter", "InMemoryPresenter", "Marker", "apply_operations"]
