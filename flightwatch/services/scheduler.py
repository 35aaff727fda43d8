"""Drive the fetch -> normalize -> reconcile cycle on timers and viewport changes."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
import enum
import logging
import math
import re
from typing import Any, Awaitable, Callable, Optional, Protocol

from flightwatch.config import DEFAULT_REFRESH_INTERVAL_SECONDS, settings
from flightwatch.ingestors.snapshot import FetchFailure, Snapshot
from flightwatch.models.air_traffic import BoundingBox
from flightwatch.models.tracking import ReconciliationResult
from flightwatch.services.normalizer import normalize_records
from flightwatch.services.presenter import EntityPresenter, apply_operations
from flightwatch.services.reconciliation import ReconciliationEngine

logger = logging.getLogger("flightwatch.scheduler")

STATUS_LOADING = "Loading flights…"
STATUS_FAILED = "Failed to load flights"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

SleepFn = Callable[[float], Awaitable[Any]]


class SnapshotSource(Protocol):
    async def fetch(self, bbox: BoundingBox) -> Snapshot | FetchFailure: ...


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class RefreshTrigger(str, enum.Enum):
    INITIAL = "initial"
    MANUAL = "manual"
    TIMER = "timer"
    VIEWPORT = "viewport"


def should_fetch_on_viewport_change(auto_refresh_enabled: bool) -> bool:
    """A moved viewport fetches at once only when the timer is not running."""

    return not auto_refresh_enabled


def coerce_interval(value: Any, default: int = DEFAULT_REFRESH_INTERVAL_SECONDS) -> int:
    """Coerce a user-supplied interval to a positive whole number of seconds.

    Strings are read up to the first non-digit, so ``"15s"`` is 15. Anything
    unparsable, non-finite or not positive falls back to ``default``.
    """

    seconds: int | None = None
    if isinstance(value, bool):
        seconds = None
    elif isinstance(value, int):
        seconds = value
    elif isinstance(value, float):
        seconds = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        seconds = int(match.group(1)) if match else None

    if seconds is None or seconds <= 0:
        return default
    return seconds


class PeriodicTask:
    """Call ``callback`` every ``interval_seconds`` until stopped."""

    def __init__(self, callback: Callable[[], None], *, sleep: SleepFn = asyncio.sleep) -> None:
        self._callback = callback
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self.interval_seconds: float | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_seconds: float) -> asyncio.Task[None]:
        loop = asyncio.get_running_loop()
        self.stop()
        self.interval_seconds = interval_seconds
        self._task = loop.create_task(self._run(interval_seconds))
        return self._task

    def stop(self) -> None:
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()

    async def aclose(self) -> None:
        """Stop and wait for the cancelled loop to finish."""

        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, interval_seconds: float) -> None:
        while True:
            await self._sleep(interval_seconds)
            try:
                self._callback()
            except Exception as exc:
                logger.warning("Periodic callback failed: %s", exc)


@dataclass
class CycleOutcome:
    """What one pipeline run produced."""

    trigger: RefreshTrigger
    snapshot: Optional[Snapshot] = None
    result: Optional[ReconciliationResult] = None
    failure: Optional[FetchFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class RefreshScheduler:
    """Run at most one refresh cycle at a time against a reconciliation engine.

    The scheduler is ``IDLE`` or ``FETCHING``. Any trigger arriving while a
    cycle is in flight is dropped, not queued. A failed fetch leaves the
    engine's tracked entities untouched.
    """

    def __init__(
        self,
        *,
        fetcher: SnapshotSource,
        engine: ReconciliationEngine,
        presenter: EntityPresenter,
        viewport: Callable[[], BoundingBox],
        auto_refresh: bool | None = None,
        interval_seconds: Any = None,
        status_listener: Callable[[str], None] | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.engine = engine
        self.presenter = presenter
        self._viewport = viewport
        self._auto_refresh = settings.auto_refresh if auto_refresh is None else auto_refresh
        self._interval = coerce_interval(
            settings.refresh_interval if interval_seconds is None else interval_seconds
        )
        self._status_listener = status_listener
        self._timer = PeriodicTask(self._on_timer_tick, sleep=sleep)
        self._tasks: set[asyncio.Task[CycleOutcome]] = set()
        self.state = RefreshState.IDLE
        self.status = ""

    @property
    def auto_refresh_enabled(self) -> bool:
        return self._auto_refresh

    @property
    def interval_seconds(self) -> int:
        return self._interval

    @property
    def timer(self) -> PeriodicTask:
        return self._timer

    async def start(self) -> CycleOutcome | None:
        """Load the current viewport once, then arm the timer if enabled."""

        outcome = await self.refresh(RefreshTrigger.INITIAL)
        self.set_auto_refresh(self._auto_refresh)
        return outcome

    async def aclose(self) -> None:
        await self._timer.aclose()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def set_auto_refresh(self, enabled: bool) -> None:
        self._auto_refresh = enabled
        self._timer.stop()
        if enabled:
            self._timer.start(self._interval)
        logger.info(
            "Auto-refresh %s (interval=%ss)",
            "enabled" if enabled else "disabled",
            self._interval,
        )

    def set_interval(self, value: Any) -> None:
        self._interval = coerce_interval(value)
        self.set_auto_refresh(self._auto_refresh)

    def on_viewport_changed(self) -> bool:
        if not should_fetch_on_viewport_change(self._auto_refresh):
            logger.debug("Viewport changed; waiting for the next timer tick")
            return False
        return self.request_refresh(RefreshTrigger.VIEWPORT)

    def request_refresh(self, trigger: RefreshTrigger = RefreshTrigger.MANUAL) -> bool:
        """Start a cycle in the background; ``False`` if one is already running."""

        loop = asyncio.get_running_loop()
        if not self._claim(trigger):
            return False
        task = loop.create_task(self._run_cycle(trigger))
        self._tasks.add(task)
        task.add_done_callback(self._on_cycle_done)
        return True

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.MANUAL) -> CycleOutcome | None:
        """Run a cycle and wait for it; ``None`` if one is already running."""

        if not self._claim(trigger):
            return None
        return await self._run_cycle(trigger)

    def _claim(self, trigger: RefreshTrigger) -> bool:
        if self.state is RefreshState.FETCHING:
            logger.debug("Dropping %s refresh; a cycle is already in flight", trigger.value)
            return False
        self.state = RefreshState.FETCHING
        return True

    async def _run_cycle(self, trigger: RefreshTrigger) -> CycleOutcome:
        try:
            self._set_status(STATUS_LOADING)
            bbox = self._viewport()
            fetched = await self.fetcher.fetch(bbox)
            if isinstance(fetched, FetchFailure):
                logger.warning(
                    "Refresh (%s) failed: %s %s",
                    trigger.value,
                    fetched.kind.value,
                    fetched.message,
                )
                self._set_status(STATUS_FAILED)
                return CycleOutcome(trigger=trigger, failure=fetched)

            result = self.engine.reconcile(normalize_records(fetched.states))
            apply_operations(result, self.presenter)
            self._set_status(f"Loaded {fetched.count} aircraft")
            logger.info(
                "Refresh (%s): %s states, %s created, %s updated, %s removed",
                trigger.value,
                fetched.count,
                len(result.creates),
                len(result.updates),
                len(result.removes),
            )
            return CycleOutcome(trigger=trigger, snapshot=fetched, result=result)
        finally:
            self.state = RefreshState.IDLE

    def _on_timer_tick(self) -> None:
        self.request_refresh(RefreshTrigger.TIMER)

    def _on_cycle_done(self, task: asyncio.Task[CycleOutcome]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Refresh cycle raised: %s", exc, exc_info=exc)

    def _set_status(self, message: str) -> None:
        self.status = message
        if self._status_listener is not None:
            self._status_listener(message)


__all__ = [
    "CycleOutcome",
    "PeriodicTask",
    "RefreshScheduler",
    "RefreshState",
    "RefreshTrigger",
    "STATUS_FAILED",
    "STATUS_LOADING",
    "SnapshotSource",
    "coerce_interval",
    "should_fetch_on_viewport_change",
]
