from __future__ import annotations

import json
import random

import pytest

from livematch.models.matches import Match, MatchesResponse, OddsUpdate
from livematch.services.sample_feed_client import FetchError, SampleFeedClient


@pytest.mark.asyncio
async def test_sample_client_generates_paired_matches_and_odds() -> None:
    client = SampleFeedClient(match_count=20, delay_scale=0, rng=random.Random(2))

    matches = await client.get_matches()
    odds = await client.get_odds()

    assert sorted(m.id for m in matches) == list(range(1001, 1021))
    assert [o.id for o in odds] == list(range(1001, 1021))
    assert [m.start_time for m in matches] == sorted(m.start_time for m in matches)
    for match in matches:
        assert match.team_a != match.team_b
    for row in odds:
        assert 1.1 <= row.team_a_odds <= 3.0
        assert round(row.team_b_odds, 2) == row.team_b_odds


def test_wire_payloads_use_feed_field_names() -> None:
    client = SampleFeedClient(delay_scale=0, rng=random.Random(4))

    payload = json.loads(client.matches_json(3))
    assert len(payload["matches"]) == 3
    assert set(payload["matches"][0]) == {"matchID", "teamA", "teamB", "startTime"}
    parsed = MatchesResponse.model_validate(payload)
    assert isinstance(parsed.matches[0], Match)

    odds_payload = json.loads(client.odds_json(2))
    assert set(odds_payload["odds"][0]) == {"matchID", "teamAOdds", "teamBOdds"}

    update = OddsUpdate.model_validate({"matchID": 1001, "teamAOdds": 2.1, "teamBOdds": 1.9})
    assert update.match_id == 1001


@pytest.mark.asyncio
async def test_failure_rate_raises_fetch_error() -> None:
    always = SampleFeedClient(match_count=3, delay_scale=0, failure_rate=1.0, rng=random.Random(7))
    with pytest.raises(FetchError):
        await always.get_matches()
    with pytest.raises(FetchError):
        await always.get_odds()

    never = SampleFeedClient(match_count=3, delay_scale=0, failure_rate=0.0, rng=random.Random(7))
    assert len(await never.get_odds()) == 3
