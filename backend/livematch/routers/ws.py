import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from livematch.services.coordinator import CoordinatorEvent
from livematch.services.live_session import LiveSession
from livematch.services.websocket_relay import state_messages

logger = logging.getLogger("livematch.ws")

router = APIRouter()


@router.websocket("/ws")
async def websocket_live_matches(ws: WebSocket):
    """Stream coordinator output changes; clients acknowledge renders with ``ui_applied``."""
    session: LiveSession = ws.app.state.live_session
    manager = session.websocket_manager
    try:
        connection_id = await manager.connect(ws)
    except RuntimeError:
        await ws.close(code=1013, reason="Too many connections")
        return

    try:
        for message in state_messages(session.coordinator.output):
            if not await manager.send(connection_id, message):
                return
        while True:
            try:
                payload = await ws.receive_json()
            except ValueError:
                logger.warning("Ignoring malformed websocket frame connection_id=%s", connection_id)
                continue
            await manager.touch(connection_id)
            message_type = payload.get("type") if isinstance(payload, dict) else None
            if message_type == "ui_applied":
                await session.coordinator.handle(CoordinatorEvent.ui_applied)
            elif message_type == "refresh":
                await session.coordinator.handle(CoordinatorEvent.manual_refresh)
            elif message_type == "subscribe":
                types = await manager.update_filters(connection_id, payload.get("types", []))
                await manager.send(connection_id, {"type": "subscribed", "data": types})
            elif message_type == "ping":
                await manager.send(connection_id, {"type": "pong", "data": None})
            else:
                logger.warning("Unsupported websocket message type=%s", message_type)
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(connection_id)
