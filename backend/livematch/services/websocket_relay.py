"""
backend/livematch/services/websocket_relay.py

Purpose:
    Fans coordinator output changes out to WebSocket clients. Output listeners
    are synchronous, so changes are parked per message type and broadcast by a
    single relay task. A type that changes again before its turn only keeps
    its latest value, so a stalled client never grows the backlog beyond one
    entry per message type.

Dependencies:
    - livematch.services.coordinator
    - livematch.services.websocket_manager
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from livematch.models.matches import MatchWithOdds, UpdateMetrics
from livematch.services.coordinator import CoordinatorOutput
from livematch.services.websocket_manager import WebSocketManager

logger = logging.getLogger("livematch.websocket_relay")


def serialize_matches(matches: list[MatchWithOdds]) -> list[dict[str, Any]]:
    return [row.model_dump(mode="json", by_alias=True) for row in matches]


def serialize_metrics(metrics: UpdateMetrics) -> dict[str, Any]:
    return metrics.model_dump(mode="json", by_alias=True)


_SERIALIZERS: dict[str, Callable[[Any], Any]] = {
    "matches": serialize_matches,
    "metrics": serialize_metrics,
}


def state_messages(output: CoordinatorOutput) -> list[dict[str, Any]]:
    """Full current state, sent to a client right after it connects."""
    return [
        {"type": "loading", "data": output.is_loading.value},
        {"type": "matches", "data": serialize_matches(output.matches.value)},
        {"type": "metrics", "data": serialize_metrics(output.metrics.value)},
        {"type": "error", "data": output.error_message.value},
    ]


class WebSocketRelay:
    def __init__(self, output: CoordinatorOutput, manager: WebSocketManager) -> None:
        self._output = output
        self._manager = manager
        # message type -> latest unsent value, oldest pending type first
        self._pending: dict[str, Any] = {}
        self._ready = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._unwatch: list[Callable[[], None]] = []
        self.relayed_total = 0
        self.coalesced_total = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        if self._task is not None:
            return
        self._unwatch = [
            self._output.matches.watch(lambda value: self._enqueue("matches", value)),
            self._output.metrics.watch(lambda value: self._enqueue("metrics", value)),
            self._output.is_loading.watch(lambda value: self._enqueue("loading", value)),
            self._output.error_message.watch(lambda value: self._enqueue("error", value)),
        ]
        self._task = asyncio.create_task(self._relay_loop(), name="ws_relay")

    async def stop(self) -> None:
        for unwatch in self._unwatch:
            unwatch()
        self._unwatch = []
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self._pending.clear()
        self._ready.clear()

    def _enqueue(self, message_type: str, value: Any) -> None:
        if message_type in self._pending:
            self.coalesced_total += 1
            logger.debug("Coalesced pending websocket message type=%s", message_type)
        self._pending[message_type] = value
        self._ready.set()

    async def _relay_loop(self) -> None:
        while True:
            await self._ready.wait()
            message_type = next(iter(self._pending))
            value = self._pending.pop(message_type)
            if not self._pending:
                self._ready.clear()
            serializer = _SERIALIZERS.get(message_type)
            try:
                data = serializer(value) if serializer else value
                await self._manager.broadcast(message_type=message_type, data=data)
                self.relayed_total += 1
            except Exception:
                logger.exception("WebSocket relay failed message_type=%s", message_type)
