"""
backend/livematch/services/event_stream.py

Purpose:
    Process-local publish/subscribe channel for store notifications. Each
    subscriber owns a bounded worker queue, so publishing never blocks and a
    slow or failing subscriber cannot stall the publisher or its peers.

Dependencies:
    - asyncio
    - livematch.utils
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from livematch.utils import utcnow

logger = logging.getLogger("livematch.stream")

T = TypeVar("T")
StreamHandler = Callable[[Any], Awaitable[None]]


@dataclass
class _Subscription:
    handler_name: str
    handler: StreamHandler
    queue: asyncio.Queue
    worker: asyncio.Task | None = None
    handled_total: int = 0
    failed_total: int = 0
    dropped_total: int = 0
    max_queue_depth_seen: int = 0


class EventStream(Generic[T]):
    """Hot stream: values published while nobody listens are not replayed."""

    def __init__(self, name: str, *, queue_maxsize: int = 1000, error_buffer_size: int = 50) -> None:
        self.name = name
        self._queue_maxsize = max(1, int(queue_maxsize))
        self._subscriptions: dict[str, _Subscription] = {}
        self._published = 0
        self._handled = 0
        self._failed = 0
        self._dropped = 0
        self._errors: deque[dict[str, Any]] = deque(maxlen=max(1, int(error_buffer_size)))

    def subscribe(self, handler: StreamHandler, *, handler_name: str) -> None:
        if handler_name in self._subscriptions:
            raise ValueError(f"handler already subscribed: {handler_name}")
        sub = _Subscription(
            handler_name=handler_name,
            handler=handler,
            queue=asyncio.Queue(maxsize=self._queue_maxsize),
        )
        sub.worker = asyncio.create_task(self._handler_loop(sub), name=f"stream_{self.name}_{handler_name}")
        self._subscriptions[handler_name] = sub
        logger.debug("Subscribed handler=%s to stream=%s", handler_name, self.name)

    def unsubscribe(self, handler_name: str) -> bool:
        sub = self._subscriptions.pop(handler_name, None)
        if sub is None:
            return False
        if sub.worker is not None:
            sub.worker.cancel()
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, value: T) -> int:
        """Fan ``value`` out to every subscriber queue. Returns the number of queues reached."""
        self._published += 1
        delivered = 0
        for sub in self._subscriptions.values():
            try:
                sub.queue.put_nowait(value)
                delivered += 1
                sub.max_queue_depth_seen = max(sub.max_queue_depth_seen, sub.queue.qsize())
            except asyncio.QueueFull:
                self._dropped += 1
                sub.dropped_total += 1
                logger.warning(
                    "Stream queue full; dropping value stream=%s handler=%s",
                    self.name,
                    sub.handler_name,
                )
        return delivered

    async def join(self) -> None:
        """Wait until every value published so far has been handled."""
        for sub in list(self._subscriptions.values()):
            await sub.queue.join()

    async def close(self) -> None:
        subs = list(self._subscriptions.values())
        self._subscriptions.clear()
        for sub in subs:
            if sub.worker is not None:
                sub.worker.cancel()
        for sub in subs:
            if sub.worker is None:
                continue
            try:
                await sub.worker
            except asyncio.CancelledError:
                pass

    def stats(self) -> dict[str, Any]:
        per_handler: dict[str, dict[str, Any]] = {}
        for name, sub in self._subscriptions.items():
            depth = sub.queue.qsize()
            per_handler[name] = {
                "queue_depth": depth,
                "queue_limit": self._queue_maxsize,
                "queue_usage_pct": round((depth / self._queue_maxsize) * 100, 2),
                "handled_total": sub.handled_total,
                "failed_total": sub.failed_total,
                "dropped_total": sub.dropped_total,
                "max_queue_depth_seen": sub.max_queue_depth_seen,
            }
        return {
            "name": self.name,
            "subscribers": len(self._subscriptions),
            "published_total": self._published,
            "handled_total": self._handled,
            "failed_total": self._failed,
            "dropped_total": self._dropped,
            "per_handler": per_handler,
            "recent_errors": list(self._errors),
        }

    async def _handler_loop(self, sub: _Subscription) -> None:
        while True:
            value = await sub.queue.get()
            try:
                await sub.handler(value)
                self._handled += 1
                sub.handled_total += 1
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._failed += 1
                sub.failed_total += 1
                self._errors.append(
                    {
                        "stream": self.name,
                        "handler_name": sub.handler_name,
                        "ts": utcnow().isoformat(),
                        "error": str(exc),
                    }
                )
                logger.error(
                    "Stream handler failed stream=%s handler=%s error=%s",
                    self.name,
                    sub.handler_name,
                    str(exc),
                    exc_info=True,
                )
            finally:
                sub.queue.task_done()
