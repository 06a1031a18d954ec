"""
backend/tests/test_matches_store.py

Purpose:
    Unit tests for the match/odds store: bootstrap and fallback merge, joined
    view ordering, odds update policy and metrics accumulation.
"""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timezone

import pytest

from fakes import FakeFetcher
from livematch.models.matches import Match, Odds, OddsUpdate, UIUpdateType
from livematch.services.matches_store import MatchesStore


def _collect(stream, name: str = "collector") -> list:
    seen: list = []

    async def handler(value):
        seen.append(value)

    stream.subscribe(handler, handler_name=name)
    return seen


def _ts(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 7, 4, hour, minute, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_bootstrap_sample_data_sorted_by_start_time_desc(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    published = _collect(store.data_stream)

    await store.bootstrap()
    await store.data_stream.join()

    snapshot = await store.snapshot()
    assert [row.id for row in snapshot] == [1005, 1004, 1003, 1002, 1001]
    assert snapshot[0].match.team_a == "Falcons"
    assert len(published) == 1
    assert [row.id for row in published[0]] == [1005, 1004, 1003, 1002, 1001]
    assert telemetry.errors == []
    await store.close()


@pytest.mark.asyncio
async def test_bootstrap_falls_back_when_both_fetches_fail(telemetry) -> None:
    fetcher = FakeFetcher(matches=[], odds=[], fail_matches=True, fail_odds=True)
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)

    await store.bootstrap()

    snapshot = await store.snapshot()
    assert sorted(row.id for row in snapshot) == [1001, 1002, 1003, 1004, 1005]
    assert len(telemetry.errors) == 1
    assert telemetry.errors[0][1] == "bootstrap"
    await store.close()


@pytest.mark.asyncio
async def test_bootstrap_falls_back_when_odds_fetch_fails(telemetry) -> None:
    fetcher = FakeFetcher(
        matches=[Match(id=7, team_a="A", team_b="B", start_time=_ts(12))],
        odds=[],
        fail_odds=True,
    )
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)

    await store.bootstrap()

    snapshot = await store.snapshot()
    assert len(snapshot) == 5
    assert 7 not in {row.id for row in snapshot}
    await store.close()


@pytest.mark.asyncio
async def test_bootstrap_re_merges_without_clearing(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.load_matches([Match(id=42, team_a="X", team_b="Y", start_time=_ts(23))])
    await store.load_odds([Odds(id=42, team_a_odds=1.5, team_b_odds=2.5)])

    await store.bootstrap()
    await store.bootstrap()

    snapshot = await store.snapshot()
    assert [row.id for row in snapshot] == [42, 1005, 1004, 1003, 1002, 1001]
    await store.close()


@pytest.mark.asyncio
async def test_joined_view_excludes_matches_without_odds_and_keeps_insertion_order_on_ties(telemetry) -> None:
    store = MatchesStore(fetcher=FakeFetcher(), telemetry=telemetry)
    await store.load_matches(
        [
            Match(id=3, team_a="C", team_b="D", start_time=_ts(15)),
            Match(id=1, team_a="A", team_b="B", start_time=_ts(15)),
            Match(id=2, team_a="E", team_b="F", start_time=_ts(18)),
            Match(id=4, team_a="G", team_b="H", start_time=_ts(20)),
        ]
    )
    await store.load_odds(
        [
            Odds(id=1, team_a_odds=1.5, team_b_odds=2.5),
            Odds(id=2, team_a_odds=1.6, team_b_odds=2.4),
            Odds(id=3, team_a_odds=1.7, team_b_odds=2.3),
        ]
    )

    snapshot = await store.snapshot()
    assert [row.id for row in snapshot] == [2, 3, 1]

    await store.load_odds([Odds(id=4, team_a_odds=2.0, team_b_odds=2.0)])
    snapshot = await store.snapshot()
    assert [row.id for row in snapshot] == [4, 2, 3, 1]
    await store.close()


@pytest.mark.asyncio
async def test_joined_view_excludes_odds_without_match(telemetry) -> None:
    fetcher = FakeFetcher(
        matches=[Match(id=1, team_a="A", team_b="B", start_time=_ts(15))],
        odds=[
            Odds(id=1, team_a_odds=1.5, team_b_odds=2.5),
            Odds(id=99, team_a_odds=1.8, team_b_odds=2.0),
        ],
    )
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    published = _collect(store.data_stream)

    await store.bootstrap()
    await store.load_odds([Odds(id=98, team_a_odds=2.2, team_b_odds=1.7)])
    await store.data_stream.join()

    assert [row.id for row in published[-1]] == [1]
    assert [row.id for row in await store.snapshot()] == [1]
    await store.close()


@pytest.mark.asyncio
async def test_apply_update_changes_odds_and_metrics(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.bootstrap()
    data = _collect(store.data_stream)
    metrics_seen = _collect(store.metrics_stream)

    changed = await store.apply_update(OddsUpdate(match_id=1001, team_a_odds=2.10, team_b_odds=1.90))
    await store.data_stream.join()
    await store.metrics_stream.join()

    assert changed is True
    metrics = await store.current_metrics()
    assert metrics.received_updates == 1
    assert metrics.average_latency > 0
    row = next(r for r in await store.snapshot() if r.id == 1001)
    assert (row.odds.team_a_odds, row.odds.team_b_odds) == (2.10, 1.90)
    assert len(data) == 1
    assert len(metrics_seen) == 1
    assert metrics_seen[0].received_updates == 1
    assert telemetry.updates[0][0] == 1001
    await store.close()


@pytest.mark.asyncio
async def test_unchanged_update_is_accepted_without_publish(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.bootstrap()
    data = _collect(store.data_stream)
    metrics_seen = _collect(store.metrics_stream)
    before = await store.current_metrics()

    changed = await store.apply_update(OddsUpdate(match_id=1001, team_a_odds=1.95, team_b_odds=2.10))
    await store.data_stream.join()
    await store.metrics_stream.join()

    assert changed is False
    assert await store.current_metrics() == before
    assert data == []
    assert metrics_seen == []
    assert telemetry.updates == []
    await store.close()


@pytest.mark.asyncio
async def test_unknown_match_update_is_dropped(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.bootstrap()
    data = _collect(store.data_stream)
    before = await store.snapshot()

    changed = await store.apply_update(OddsUpdate(match_id=9999, team_a_odds=2.0, team_b_odds=2.0))
    await store.data_stream.join()

    assert changed is False
    assert await store.snapshot() == before
    assert (await store.current_metrics()).received_updates == 0
    assert data == []
    await store.close()


@pytest.mark.asyncio
async def test_record_ui_update_twice_publishes_metrics_only(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.bootstrap()
    data = _collect(store.data_stream)
    metrics_seen = _collect(store.metrics_stream)

    await store.record_ui_update()
    await store.record_ui_update()
    await store.metrics_stream.join()
    await store.data_stream.join()

    metrics = await store.current_metrics()
    assert metrics.ui_updates == 2
    assert metrics.received_updates == 0
    assert [m.ui_updates for m in metrics_seen] == [1, 2]
    assert data == []
    assert telemetry.ui_updates == [(5, UIUpdateType.batch_update), (5, UIUpdateType.batch_update)]
    await store.close()


@pytest.mark.asyncio
async def test_received_updates_counts_only_effective_updates(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.bootstrap()
    rng = random.Random(7)
    current = {row.id: (row.odds.team_a_odds, row.odds.team_b_odds) for row in await store.snapshot()}
    expected = 0

    for _ in range(200):
        match_id = rng.choice([1001, 1002, 1003, 1004, 1005, 4242])
        if match_id in current and rng.random() < 0.3:
            values = current[match_id]
        else:
            values = (rng.choice([1.5, 1.95, 2.1]), rng.choice([1.8, 2.1, 2.25]))
        if match_id in current and values != current[match_id]:
            expected += 1
            current[match_id] = values
        await store.apply_update(OddsUpdate(match_id=match_id, team_a_odds=values[0], team_b_odds=values[1]))

    metrics = await store.current_metrics()
    assert metrics.received_updates == expected
    assert metrics.average_latency == pytest.approx(sum(lat for _, lat in telemetry.updates) / expected)
    await store.close()


@pytest.mark.asyncio
async def test_concurrent_updates_are_serialized(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.bootstrap()
    updates = [
        OddsUpdate(match_id=1001 + (idx % 5), team_a_odds=round(1.2 + idx * 0.01, 2), team_b_odds=3.0)
        for idx in range(50)
    ]

    results = await asyncio.gather(*(store.apply_update(update) for update in updates))

    assert all(results)
    metrics = await store.current_metrics()
    assert metrics.received_updates == 50
    final = {row.id: row.odds.team_a_odds for row in await store.snapshot()}
    assert final[1001] == round(1.2 + 45 * 0.01, 2)
    assert final[1005] == round(1.2 + 49 * 0.01, 2)
    await store.close()


@pytest.mark.asyncio
async def test_average_latency_is_zero_without_updates(fetcher, telemetry) -> None:
    store = MatchesStore(fetcher=fetcher, telemetry=telemetry)
    await store.bootstrap()
    await store.record_ui_update()

    metrics = await store.current_metrics()
    assert metrics.received_updates == 0
    assert metrics.average_latency == 0
    await store.close()
