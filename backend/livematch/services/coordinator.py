"""
backend/livematch/services/coordinator.py

Purpose:
    Bridges consumer lifecycle/interaction events to store and feed
    operations, and store notifications to one observable output state.
    The joined view is debounced before it reaches the output; metrics are
    relayed as they arrive.

Dependencies:
    - apscheduler (periodic metrics report)
    - livematch.services.debounce
    - livematch.services.protocols
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from livematch.config_feed import MATCHES_DEBOUNCE_SECONDS, METRICS_LOG_INTERVAL_SECONDS
from livematch.models.matches import MatchWithOdds, UIUpdateType, UpdateMetrics
from livematch.services.debounce import Debouncer
from livematch.services.protocols import (
    MatchesStoreProtocol,
    PerformanceMonitorProtocol,
    TelemetrySink,
    UpdateFeedProtocol,
)

logger = logging.getLogger("livematch.coordinator")

T = TypeVar("T")
_METRICS_JOB_ID = "metrics_logger"


class CoordinatorEvent(str, Enum):
    started = "started"
    stopped = "stopped"
    ui_applied = "ui_applied"
    manual_refresh = "manual_refresh"


class ObservableValue(Generic[T]):
    """A value that notifies its listeners whenever it changes."""

    def __init__(self, name: str, initial: T) -> None:
        self.name = name
        self._value = initial
        self._listeners: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        if value == self._value:
            return False
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Output listener failed field=%s", self.name)
        return True

    def watch(self, listener: Callable[[T], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unwatch() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unwatch


class CoordinatorOutput:
    def __init__(self) -> None:
        self.matches: ObservableValue[list[MatchWithOdds]] = ObservableValue("matches", [])
        self.metrics: ObservableValue[UpdateMetrics] = ObservableValue("metrics", UpdateMetrics())
        self.is_loading: ObservableValue[bool] = ObservableValue("is_loading", False)
        self.error_message: ObservableValue[str | None] = ObservableValue("error_message", None)

    def fields(self) -> tuple[ObservableValue[Any], ...]:
        return (self.matches, self.metrics, self.is_loading, self.error_message)


class MatchesCoordinator:
    def __init__(
        self,
        *,
        store: MatchesStoreProtocol,
        feed: UpdateFeedProtocol,
        monitor: PerformanceMonitorProtocol,
        telemetry: TelemetrySink,
        debounce_seconds: float = MATCHES_DEBOUNCE_SECONDS,
        metrics_log_interval: float = METRICS_LOG_INTERVAL_SECONDS,
    ) -> None:
        self._store = store
        self._feed = feed
        self._monitor = monitor
        self._telemetry = telemetry
        self._metrics_log_interval = metrics_log_interval
        self.output = CoordinatorOutput()
        self._debouncer: Debouncer[list[MatchWithOdds]] = Debouncer(debounce_seconds, self.output.matches.set)
        self._scheduler = AsyncIOScheduler()
        self._bound = False
        self._handler_prefix = f"coordinator_{id(self):x}"
        self._pending: set[asyncio.Task] = set()

    async def handle(self, event: CoordinatorEvent) -> None:
        logger.debug("Coordinator event=%s", event.value)
        if event is CoordinatorEvent.started:
            self._bind()
            await self._load_initial_data()
            await self._feed.start()
            self._start_metrics_logging()
        elif event is CoordinatorEvent.stopped:
            await self._feed.stop()
            self._stop_metrics_logging()
            self._telemetry.log_performance_metrics()
        elif event is CoordinatorEvent.ui_applied:
            self._monitor.track_ui_update(len(self.output.matches.value), UIUpdateType.batch_update)
            await self._store.record_ui_update()
        elif event is CoordinatorEvent.manual_refresh:
            await self._load_initial_data()
        else:
            raise ValueError(f"unsupported coordinator event: {event!r}")

    def send(self, event: CoordinatorEvent) -> asyncio.Task:
        """Schedule ``event`` on the running loop without waiting for it."""
        task = asyncio.create_task(self.handle(event), name=f"coordinator_{event.value}")
        self._pending.add(task)
        task.add_done_callback(self._on_send_done)
        return task

    @property
    def metrics_logging_active(self) -> bool:
        return self._scheduler.running and self._scheduler.get_job(_METRICS_JOB_ID) is not None

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._bound:
            self._store.data_stream.unsubscribe(f"{self._handler_prefix}_matches")
            self._store.metrics_stream.unsubscribe(f"{self._handler_prefix}_metrics")
            self._bound = False
        self._debouncer.cancel()
        await self._feed.stop()
        self._stop_metrics_logging()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def _bind(self) -> None:
        if self._bound:
            return
        self._store.data_stream.subscribe(self._on_matches, handler_name=f"{self._handler_prefix}_matches")
        self._store.metrics_stream.subscribe(self._on_metrics, handler_name=f"{self._handler_prefix}_metrics")
        self._bound = True

    async def _on_matches(self, matches: list[MatchWithOdds]) -> None:
        self._debouncer.push(matches)

    async def _on_metrics(self, metrics: UpdateMetrics) -> None:
        self.output.metrics.set(metrics)

    async def _load_initial_data(self) -> None:
        self.output.is_loading.set(True)
        self.output.error_message.set(None)
        try:
            await self._store.bootstrap()
            matches = await self._store.snapshot()
            self.output.matches.set(matches)
            logger.info("Initial data loaded: %d matches", len(matches))
        finally:
            self.output.is_loading.set(False)

    def _start_metrics_logging(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
        self._scheduler.add_job(
            self._log_metrics_job,
            "interval",
            seconds=self._metrics_log_interval,
            id=_METRICS_JOB_ID,
            replace_existing=True,
        )

    def _stop_metrics_logging(self) -> None:
        if self._scheduler.running and self._scheduler.get_job(_METRICS_JOB_ID):
            self._scheduler.remove_job(_METRICS_JOB_ID)

    async def _log_metrics_job(self) -> None:
        self._telemetry.log_performance_metrics()

    def _on_send_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Coordinator event task failed: %s", exc, exc_info=exc)
