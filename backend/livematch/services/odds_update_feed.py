"""
backend/livematch/services/odds_update_feed.py

Purpose:
    Synthetic real-time odds feed. Once per tick it sends a random burst of
    odds updates into the store, spacing the updates of one burst by a small
    delay. Follows the start()/stop() asyncio task loop pattern used by the
    other background services.

Dependencies:
    - asyncio
    - livematch.config_feed
    - livematch.services.protocols
"""

from __future__ import annotations

import asyncio
import logging
import random

from livematch.config_feed import (
    INTER_UPDATE_DELAY_SECONDS,
    MAX_UPDATES_PER_TICK,
    ODDS_CEILING,
    ODDS_CHANGE_MAX,
    ODDS_DECIMALS,
    ODDS_FLOOR,
    UPDATE_TICK_SECONDS,
)
from livematch.models.matches import MatchWithOdds, OddsUpdate
from livematch.services.protocols import MatchesStoreProtocol

logger = logging.getLogger("livematch.feed")


def perturb_odds(value: float, delta: float) -> float:
    """Shift ``value`` by ``delta``, clamp into the global odds bounds and round."""
    return round(max(ODDS_FLOOR, min(ODDS_CEILING, value + delta)), ODDS_DECIMALS)


class OddsUpdateFeed:
    def __init__(
        self,
        store: MatchesStoreProtocol,
        *,
        tick_interval: float = UPDATE_TICK_SECONDS,
        max_updates_per_tick: int = MAX_UPDATES_PER_TICK,
        update_delay: float = INTER_UPDATE_DELAY_SECONDS,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._tick_interval = max(0.0, float(tick_interval))
        self._max_updates = max(1, int(max_updates_per_tick))
        self._update_delay = max(0.0, float(update_delay))
        self._rng = rng or random.Random()
        self._task: asyncio.Task | None = None
        self._lock = asyncio.Lock()
        self.ticks_total = 0
        self.ticks_skipped = 0
        self.updates_sent = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        async with self._lock:
            if self.is_running:
                return
            self._task = asyncio.create_task(self._loop(), name="odds_update_feed")
            logger.info(
                "Odds feed started (tick=%.2fs, max_updates=%d, delay=%.2fs)",
                self._tick_interval,
                self._max_updates,
                self._update_delay,
            )

    async def stop(self) -> None:
        async with self._lock:
            if self._task is None:
                return
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Odds feed stopped")

    async def run_tick(self) -> int:
        """Send one burst of updates. Returns the number of updates submitted."""
        self.ticks_total += 1
        matches = await self._store.snapshot()
        if not matches:
            self.ticks_skipped += 1
            logger.info("No matches available for updates - waiting for initial data")
            return 0

        count = self._rng.randint(1, self._max_updates)
        for idx in range(count):
            update = self.next_update(matches)
            await self._store.apply_update(update)
            self.updates_sent += 1
            if idx < count - 1 and self._update_delay > 0:
                await asyncio.sleep(self._update_delay)
        return count

    def next_update(self, matches: list[MatchWithOdds]) -> OddsUpdate:
        target = self._rng.choice(matches)
        return OddsUpdate(
            match_id=target.id,
            team_a_odds=perturb_odds(target.odds.team_a_odds, self._rng.uniform(-ODDS_CHANGE_MAX, ODDS_CHANGE_MAX)),
            team_b_odds=perturb_odds(target.odds.team_b_odds, self._rng.uniform(-ODDS_CHANGE_MAX, ODDS_CHANGE_MAX)),
        )

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._tick_interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += self._tick_interval
            try:
                await self.run_tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Odds feed tick failed")
            if next_tick < loop.time():
                # burst overran the cadence; restart the schedule from now
                next_tick = loop.time()
