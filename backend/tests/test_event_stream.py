"""
backend/tests/test_event_stream.py

Purpose:
    Unit tests for the store notification stream.
"""

from __future__ import annotations

import asyncio

import pytest

from livematch.services.event_stream import EventStream


@pytest.mark.asyncio
async def test_stream_fanout_preserves_order() -> None:
    stream: EventStream[int] = EventStream("test", queue_maxsize=10)
    seen_a: list[int] = []
    seen_b: list[int] = []

    async def handler_a(value):
        seen_a.append(value)

    async def handler_b(value):
        await asyncio.sleep(0)
        seen_b.append(value)

    stream.subscribe(handler_a, handler_name="a")
    stream.subscribe(handler_b, handler_name="b")
    for value in range(5):
        assert stream.publish(value) == 2
    await stream.join()
    await stream.close()

    assert seen_a == [0, 1, 2, 3, 4]
    assert seen_b == [0, 1, 2, 3, 4]
    stats = stream.stats()
    assert stats["published_total"] == 5
    assert stats["handled_total"] == 10


@pytest.mark.asyncio
async def test_stream_handler_failure_isolated() -> None:
    stream: EventStream[str] = EventStream("test", queue_maxsize=10)
    success_calls = 0

    async def failing(_value):
        raise RuntimeError("boom")

    async def success(_value):
        nonlocal success_calls
        success_calls += 1

    stream.subscribe(failing, handler_name="failing")
    stream.subscribe(success, handler_name="success")
    stream.publish("x")
    stream.publish("y")
    await stream.join()

    stats = stream.stats()
    assert success_calls == 2
    assert stats["failed_total"] == 2
    assert stats["per_handler"]["failing"]["failed_total"] == 2
    assert len(stats["recent_errors"]) == 2
    await stream.close()


@pytest.mark.asyncio
async def test_stream_overflow_drops_for_slow_subscriber() -> None:
    stream: EventStream[int] = EventStream("test", queue_maxsize=1)
    release = asyncio.Event()

    async def blocked(_value):
        await release.wait()

    stream.subscribe(blocked, handler_name="blocked")
    stream.publish(1)
    stream.publish(2)
    stream.publish(3)

    assert stream.stats()["dropped_total"] >= 1
    release.set()
    await stream.close()


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_not_replayed() -> None:
    stream: EventStream[int] = EventStream("test")
    seen: list[int] = []

    async def handler(value):
        seen.append(value)

    assert stream.publish(1) == 0
    stream.subscribe(handler, handler_name="late")
    stream.publish(2)
    await stream.join()

    assert seen == [2]
    assert stream.unsubscribe("late") is True
    assert stream.unsubscribe("late") is False
    with pytest.raises(ValueError):
        stream.subscribe(handler, handler_name="again")
        stream.subscribe(handler, handler_name="again")
    await stream.close()
    assert stream.subscriber_count == 0
