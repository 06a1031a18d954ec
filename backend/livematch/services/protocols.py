"""
backend/livematch/services/protocols.py

Purpose:
    Collaborator interfaces for the live match core. The store, feed and
    coordinator depend on these protocols only, so tests can swap in fakes.

Dependencies:
    - typing
    - livematch.models.matches
"""

from __future__ import annotations

from typing import Protocol

from livematch.models.matches import Match, MatchWithOdds, Odds, OddsUpdate, UIUpdateType, UpdateMetrics
from livematch.services.event_stream import EventStream


class MatchesFetcher(Protocol):
    async def get_matches(self) -> list[Match]:
        ...

    async def get_odds(self) -> list[Odds]:
        ...


class TelemetrySink(Protocol):
    def log_update_received(self, match_id: int, latency: float) -> None:
        ...

    def log_ui_update(self, matches_count: int, update_type: UIUpdateType) -> None:
        ...

    def log_error(self, error: BaseException, context: str) -> None:
        ...

    def log_performance_metrics(self) -> object:
        ...


class PerformanceMonitorProtocol(Protocol):
    def track_ui_update(self, matches_count: int, update_type: UIUpdateType) -> None:
        ...


class MatchesStoreProtocol(Protocol):
    data_stream: EventStream[list[MatchWithOdds]]
    metrics_stream: EventStream[UpdateMetrics]

    async def bootstrap(self) -> None:
        ...

    async def snapshot(self) -> list[MatchWithOdds]:
        ...

    async def apply_update(self, update: OddsUpdate) -> bool:
        ...

    async def record_ui_update(self) -> None:
        ...

    async def current_metrics(self) -> UpdateMetrics:
        ...


class UpdateFeedProtocol(Protocol):
    @property
    def is_running(self) -> bool:
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...
