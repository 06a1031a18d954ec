"""
backend/livematch/services/websocket_manager.py

Purpose:
    Process-local WebSocket connection manager for the live match stream.
    Manages client connections, per-connection message type filters,
    heartbeat and broadcast delivery with dead connection cleanup.

Dependencies:
    - fastapi.WebSocket
    - livematch.utils
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fastapi import WebSocket

from livematch.utils import utcnow

logger = logging.getLogger("livematch.websocket_manager")

MESSAGE_TYPES = ("matches", "metrics", "loading", "error")


def _normalize_types(values: Any) -> set[str]:
    if not isinstance(values, list):
        return set()
    out: set[str] = set()
    for item in values:
        value = str(item or "").strip()
        if value in MESSAGE_TYPES:
            out.add(value)
        elif value:
            logger.warning("Ignoring unknown websocket message type filter '%s'", value)
    return out


@dataclass
class ManagedConnection:
    connection_id: str
    websocket: WebSocket
    message_types: set[str]
    connected_at: datetime
    last_seen_at: datetime


class WebSocketManager:
    def __init__(
        self,
        *,
        max_connections: int,
        heartbeat_seconds: int,
    ) -> None:
        self._max_connections = max(1, int(max_connections))
        self._heartbeat_seconds = max(1, int(heartbeat_seconds))
        self._connections: dict[str, ManagedConnection] = {}
        self._lock = asyncio.Lock()
        self._heartbeat_task: asyncio.Task | None = None
        self._running = False
        self._broadcast_total = 0
        self._send_failures = 0
        self._dropped_connections = 0
        self._last_errors: list[dict[str, Any]] = []

    async def start(self) -> None:
        async with self._lock:
            if self._running:
                return
            self._running = True
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(), name="ws_heartbeat")
            logger.info("WebSocket manager started")

    async def stop(self) -> None:
        async with self._lock:
            if not self._running:
                return
            self._running = False
            if self._heartbeat_task is not None:
                self._heartbeat_task.cancel()
                try:
                    await self._heartbeat_task
                except asyncio.CancelledError:
                    pass
                self._heartbeat_task = None
            self._connections.clear()
            logger.info("WebSocket manager stopped")

    async def connect(self, websocket: WebSocket, *, message_types: list[str] | None = None) -> str:
        await websocket.accept()
        async with self._lock:
            if len(self._connections) >= self._max_connections:
                raise RuntimeError("max_connections_exceeded")
            connection_id = str(uuid.uuid4())
            now = utcnow()
            self._connections[connection_id] = ManagedConnection(
                connection_id=connection_id,
                websocket=websocket,
                message_types=_normalize_types(message_types or []),
                connected_at=now,
                last_seen_at=now,
            )
            logger.info("WS client connected (%d total)", len(self._connections))
            return connection_id

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            self._connections.pop(connection_id, None)

    async def touch(self, connection_id: str) -> None:
        async with self._lock:
            conn = self._connections.get(connection_id)
            if conn:
                conn.last_seen_at = utcnow()

    async def update_filters(self, connection_id: str, message_types: list[str]) -> list[str]:
        async with self._lock:
            conn = self._connections.get(connection_id)
            if not conn:
                raise RuntimeError("connection_not_found")
            conn.message_types = _normalize_types(message_types)
            conn.last_seen_at = utcnow()
            return sorted(conn.message_types)

    async def send(self, connection_id: str, message: dict[str, Any]) -> bool:
        async with self._lock:
            conn = self._connections.get(connection_id)
        if conn is None:
            return False
        try:
            await conn.websocket.send_json(message)
            return True
        except Exception as exc:
            self._record_failure(conn, str(message.get("type")), exc)
            await self.disconnect(connection_id)
            self._dropped_connections += 1
            return False

    async def broadcast(self, *, message_type: str, data: Any) -> int:
        message = {"type": str(message_type), "data": data}

        async with self._lock:
            connections = list(self._connections.values())

        delivered = 0
        dead_ids: list[str] = []
        for conn in connections:
            if conn.message_types and message_type not in conn.message_types:
                continue
            try:
                await conn.websocket.send_json(message)
                delivered += 1
            except Exception as exc:
                dead_ids.append(conn.connection_id)
                self._record_failure(conn, message_type, exc)

        for conn_id in dead_ids:
            await self.disconnect(conn_id)
            self._dropped_connections += 1

        self._broadcast_total += 1
        return delivered

    def stats(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "active_connections": len(self._connections),
            "max_connections": self._max_connections,
            "heartbeat_seconds": self._heartbeat_seconds,
            "broadcast_total": self._broadcast_total,
            "send_failures": self._send_failures,
            "dropped_connections": self._dropped_connections,
            "last_errors": list(self._last_errors),
        }

    async def _heartbeat_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._heartbeat_seconds)
            async with self._lock:
                connections = list(self._connections.values())
            dead_ids: list[str] = []
            for conn in connections:
                try:
                    await conn.websocket.send_json({"type": "ping", "data": {"ts": utcnow().isoformat()}})
                except Exception:
                    dead_ids.append(conn.connection_id)
            for conn_id in dead_ids:
                await self.disconnect(conn_id)
                self._dropped_connections += 1

    def _record_failure(self, conn: ManagedConnection, message_type: str, exc: Exception) -> None:
        self._send_failures += 1
        self._last_errors.append(
            {
                "ts": utcnow().isoformat(),
                "connection_id": conn.connection_id,
                "message_type": message_type,
                "error": str(exc),
            }
        )
        if len(self._last_errors) > 200:
            self._last_errors = self._last_errors[-200:]
