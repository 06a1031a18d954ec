"""
backend/livematch/services/sample_feed_client.py

Purpose:
    Bootstrap data source simulating the ``GET /matches`` and ``GET /odds``
    endpoints of an upstream odds API. Generates a random slate of upcoming
    matches with paired odds after a short artificial network delay.

Dependencies:
    - asyncio
    - livematch.models.matches
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import timedelta

from livematch.config_feed import ODDS_DECIMALS
from livematch.models.matches import Match, MatchesResponse, Odds, OddsResponse
from livematch.utils import utcnow

logger = logging.getLogger("livematch.sample_feed")

_FIRST_MATCH_ID = 1001
_MATCHES_DELAY_S = 0.5
_ODDS_DELAY_S = 0.3
_INITIAL_ODDS_RANGE = (1.1, 3.0)

TEAM_NAMES = (
    "Eagles", "Tigers", "Lions", "Bears", "Wolves", "Hawks", "Falcons", "Panthers",
    "Jaguars", "Leopards", "Cheetahs", "Cougars", "Lynx", "Bobcats", "Wildcats",
    "Sharks", "Dolphins", "Whales", "Orcas", "Seals", "Penguins", "Puffins",
    "Ravens", "Crows", "Owls", "Vultures", "Condors", "Dragons", "Phoenix", "Griffins",
    "Thunder", "Lightning", "Storm", "Blizzard", "Hurricane", "Tornado", "Cyclone",
    "Stars", "Comet", "Meteor", "Galaxy", "Nebula", "Warriors", "Knights", "Paladins",
    "Rangers", "Titans", "Giants", "Vikings", "Spartans", "Samurai", "Pirates",
    "Corsairs", "Buccaneers", "Rebels", "Crusaders", "Templars", "Cardinals",
)


class FetchError(RuntimeError):
    """Raised when the upstream odds API cannot deliver a payload."""


class SampleFeedClient:
    def __init__(
        self,
        *,
        match_count: int = 100,
        delay_scale: float = 1.0,
        failure_rate: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._match_count = max(0, int(match_count))
        self._delay_scale = max(0.0, float(delay_scale))
        self._failure_rate = min(1.0, max(0.0, float(failure_rate)))
        self._rng = rng or random.Random()

    async def get_matches(self) -> list[Match]:
        await self._simulate_latency(_MATCHES_DELAY_S)
        self._maybe_fail("/matches")
        matches = self.generate_matches(self._match_count)
        logger.info("GET /matches retrieved %d matches", len(matches))
        return matches

    async def get_odds(self) -> list[Odds]:
        await self._simulate_latency(_ODDS_DELAY_S)
        self._maybe_fail("/odds")
        odds = self.generate_odds(self._match_count)
        logger.info("GET /odds retrieved %d odds", len(odds))
        return odds

    def generate_matches(self, count: int) -> list[Match]:
        """Matches kick off within the next seven days, ordered by start time."""
        now = utcnow().replace(second=0, microsecond=0)
        matches: list[Match] = []
        for offset in range(count):
            team_a, team_b = self._rng.sample(TEAM_NAMES, 2)
            start_time = now + timedelta(
                days=self._rng.randint(0, 7),
                hours=self._rng.randint(0, 23),
                minutes=self._rng.randint(0, 59),
            )
            matches.append(
                Match(id=_FIRST_MATCH_ID + offset, team_a=team_a, team_b=team_b, start_time=start_time)
            )
        matches.sort(key=lambda m: m.start_time)
        return matches

    def generate_odds(self, count: int) -> list[Odds]:
        low, high = _INITIAL_ODDS_RANGE
        return [
            Odds(
                id=_FIRST_MATCH_ID + offset,
                team_a_odds=round(self._rng.uniform(low, high), ODDS_DECIMALS),
                team_b_odds=round(self._rng.uniform(low, high), ODDS_DECIMALS),
            )
            for offset in range(count)
        ]

    def matches_json(self, count: int = 5) -> str:
        return MatchesResponse(matches=self.generate_matches(count)).model_dump_json(by_alias=True)

    def odds_json(self, count: int = 5) -> str:
        return OddsResponse(odds=self.generate_odds(count)).model_dump_json(by_alias=True)

    async def _simulate_latency(self, seconds: float) -> None:
        delay = seconds * self._delay_scale
        if delay > 0:
            await asyncio.sleep(delay)

    def _maybe_fail(self, endpoint: str) -> None:
        if self._failure_rate and self._rng.random() < self._failure_rate:
            logger.warning("GET %s failed (simulated upstream outage)", endpoint)
            raise FetchError(f"GET {endpoint} unavailable")
