"""
backend/livematch/services/matches_store.py

Purpose:
    Single owner of match/odds session state. Every operation runs under one
    asyncio lock, so readers never observe a half-applied update and two
    updates never interleave their read-modify-write of the same odds row.
    Publishes the joined view and the metrics snapshot on two independent
    streams.

Dependencies:
    - asyncio
    - livematch.services.event_stream
    - livematch.services.protocols
    - livematch.monitoring.feed_metrics
"""

from __future__ import annotations

import asyncio
import logging
import time

from livematch.config_feed import FALLBACK_MATCHES, FALLBACK_ODDS
from livematch.models.matches import Match, MatchWithOdds, Odds, OddsUpdate, UIUpdateType, UpdateMetrics
from livematch.monitoring.feed_metrics import METRIC_UPDATES_IGNORED
from livematch.services.event_stream import EventStream
from livematch.services.protocols import MatchesFetcher, TelemetrySink
from livematch.utils import parse_utc, utcnow

logger = logging.getLogger("livematch.store")


def fallback_matches() -> list[Match]:
    return [
        Match(id=row["id"], team_a=row["team_a"], team_b=row["team_b"], start_time=parse_utc(row["start_time"]))
        for row in FALLBACK_MATCHES
    ]


def fallback_odds() -> list[Odds]:
    return [Odds(**row) for row in FALLBACK_ODDS]


class MatchesStore:
    def __init__(
        self,
        *,
        fetcher: MatchesFetcher,
        telemetry: TelemetrySink,
        queue_maxsize: int = 1000,
    ) -> None:
        self._fetcher = fetcher
        self._telemetry = telemetry
        self._lock = asyncio.Lock()

        # dicts keep first-insertion order, which is the tie-break for equal start times
        self._matches: dict[int, Match] = {}
        self._odds: dict[int, Odds] = {}

        self._received_updates = 0
        self._ui_updates = 0
        self._latency_sum = 0.0
        self._metrics = UpdateMetrics()

        self.data_stream: EventStream[list[MatchWithOdds]] = EventStream("matches", queue_maxsize=queue_maxsize)
        self.metrics_stream: EventStream[UpdateMetrics] = EventStream("metrics", queue_maxsize=queue_maxsize)

    async def bootstrap(self) -> None:
        """Fetch the initial slate and merge it; fall back to the fixed sample set on failure."""
        try:
            matches = await self._fetcher.get_matches()
            odds = await self._fetcher.get_odds()
            used_fallback = False
        except Exception as exc:
            logger.warning("Initial data fetch failed, using fallback data: %s", exc)
            self._telemetry.log_error(exc, context="bootstrap")
            matches = fallback_matches()
            odds = fallback_odds()
            used_fallback = True

        async with self._lock:
            self._merge_matches(matches)
            self._merge_odds(odds)
            joined = self._joined_view()
            self.data_stream.publish(joined)

        logger.info(
            "Bootstrap complete matches=%d odds=%d joined=%d fallback=%s",
            len(matches),
            len(odds),
            len(joined),
            used_fallback,
        )

    async def load_matches(self, matches: list[Match]) -> None:
        async with self._lock:
            self._merge_matches(matches)

    async def load_odds(self, odds: list[Odds]) -> None:
        async with self._lock:
            self._merge_odds(odds)

    async def apply_update(self, update: OddsUpdate) -> bool:
        """Apply one odds update. Returns True when the update changed state."""
        async with self._lock:
            received_at = time.perf_counter()
            existing = self._odds.get(update.match_id)
            if existing is None:
                METRIC_UPDATES_IGNORED.labels(reason="unknown_match").inc()
                logger.warning("No existing odds found for match_id=%s", update.match_id)
                return False

            if existing.team_a_odds == update.team_a_odds and existing.team_b_odds == update.team_b_odds:
                METRIC_UPDATES_IGNORED.labels(reason="unchanged").inc()
                logger.debug("Odds unchanged for match_id=%s; update accepted without publish", update.match_id)
                return False

            self._odds[update.match_id] = Odds(
                id=update.match_id,
                team_a_odds=update.team_a_odds,
                team_b_odds=update.team_b_odds,
            )
            self._received_updates += 1
            joined = self._joined_view()

            latency = time.perf_counter() - received_at
            self._latency_sum += latency
            self._telemetry.log_update_received(update.match_id, latency)
            self._metrics = UpdateMetrics(
                received_updates=self._received_updates,
                ui_updates=self._ui_updates,
                average_latency=self._average_latency(),
                last_update_time=utcnow(),
            )

            self.data_stream.publish(joined)
            self.metrics_stream.publish(self._metrics)
            logger.debug(
                "Updated odds match_id=%s team_a=%.2f team_b=%.2f",
                update.match_id,
                update.team_a_odds,
                update.team_b_odds,
            )
            return True

    async def snapshot(self) -> list[MatchWithOdds]:
        async with self._lock:
            return self._joined_view()

    async def record_ui_update(self) -> None:
        async with self._lock:
            self._ui_updates += 1
            self._metrics = UpdateMetrics(
                received_updates=self._received_updates,
                ui_updates=self._ui_updates,
                average_latency=self._average_latency(),
                last_update_time=utcnow(),
            )
            self.metrics_stream.publish(self._metrics)
            matches_count = len(self._joined_view())
        self._telemetry.log_ui_update(matches_count, UIUpdateType.batch_update)

    async def current_metrics(self) -> UpdateMetrics:
        async with self._lock:
            return self._metrics

    async def close(self) -> None:
        await self.data_stream.close()
        await self.metrics_stream.close()

    def _merge_matches(self, matches: list[Match]) -> None:
        for match in matches:
            self._matches[match.id] = match
        logger.info("Loaded %d matches", len(matches))

    def _merge_odds(self, odds: list[Odds]) -> None:
        for row in odds:
            self._odds[row.id] = row
        logger.info("Loaded %d odds", len(odds))

    def _joined_view(self) -> list[MatchWithOdds]:
        joined = [
            MatchWithOdds(match=match, odds=self._odds[match_id])
            for match_id, match in self._matches.items()
            if match_id in self._odds
        ]
        # sort is stable with reverse=True, equal start times keep insertion order
        joined.sort(key=lambda row: row.match.start_time, reverse=True)
        return joined

    def _average_latency(self) -> float:
        if self._received_updates <= 0:
            return 0.0
        return self._latency_sum / self._received_updates
