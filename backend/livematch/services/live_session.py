"""
backend/livematch/services/live_session.py

Purpose:
    Object graph for one live match session: fetch client, telemetry, store,
    update feed, coordinator and the WebSocket fan-out. Owns startup and
    teardown ordering for the app lifespan.

Dependencies:
    - livematch.config
    - livematch.services.*
    - livematch.monitoring.*
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from livematch.config import Settings
from livematch.monitoring.metrics_logger import MetricsLogger
from livematch.monitoring.performance_monitor import PerformanceMonitor
from livematch.services.coordinator import CoordinatorEvent, MatchesCoordinator
from livematch.services.matches_store import MatchesStore
from livematch.services.odds_update_feed import OddsUpdateFeed
from livematch.services.protocols import MatchesFetcher
from livematch.services.sample_feed_client import SampleFeedClient
from livematch.services.websocket_manager import WebSocketManager
from livematch.services.websocket_relay import WebSocketRelay

logger = logging.getLogger("livematch.session")


@dataclass
class LiveSession:
    source: MatchesFetcher
    telemetry: MetricsLogger
    monitor: PerformanceMonitor
    store: MatchesStore
    feed: OddsUpdateFeed
    coordinator: MatchesCoordinator
    websocket_manager: WebSocketManager
    relay: WebSocketRelay

    async def start(self, *, autostart: bool) -> None:
        await self.websocket_manager.start()
        await self.relay.start()
        if autostart:
            await self.coordinator.handle(CoordinatorEvent.started)
        logger.info("Live session ready (autostart=%s)", autostart)

    async def stop(self) -> None:
        await self.coordinator.handle(CoordinatorEvent.stopped)
        await self.coordinator.close()
        await self.relay.stop()
        await self.store.close()
        await self.websocket_manager.stop()
        logger.info("Live session closed")


def build_session(settings: Settings, *, fetcher: MatchesFetcher | None = None) -> LiveSession:
    telemetry = MetricsLogger()
    monitor = PerformanceMonitor()
    source = fetcher or SampleFeedClient(
        match_count=settings.SAMPLE_MATCH_COUNT,
        delay_scale=settings.SAMPLE_FETCH_DELAY_SCALE,
        failure_rate=settings.SAMPLE_FETCH_FAILURE_RATE,
    )
    store = MatchesStore(
        fetcher=source,
        telemetry=telemetry,
        queue_maxsize=settings.STREAM_QUEUE_MAXSIZE,
    )
    feed = OddsUpdateFeed(store)
    coordinator = MatchesCoordinator(store=store, feed=feed, monitor=monitor, telemetry=telemetry)
    websocket_manager = WebSocketManager(
        max_connections=settings.WS_MAX_CONNECTIONS,
        heartbeat_seconds=settings.WS_HEARTBEAT_SECONDS,
    )
    relay = WebSocketRelay(coordinator.output, websocket_manager)
    return LiveSession(
        source=source,
        telemetry=telemetry,
        monitor=monitor,
        store=store,
        feed=feed,
        coordinator=coordinator,
        websocket_manager=websocket_manager,
        relay=relay,
    )
