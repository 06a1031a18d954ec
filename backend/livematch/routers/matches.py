"""
backend/livematch/routers/matches.py

Purpose:
    REST surface over the live match session: joined view and metrics reads,
    plus the command endpoints a consumer uses instead of the WebSocket
    (manual refresh, render acknowledgement, feed control) and the raw
    payloads of the sample upstream source.

Dependencies:
    - livematch.services.live_session
    - livematch.services.websocket_relay
    - prometheus_client
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from livematch.services.coordinator import CoordinatorEvent
from livematch.services.live_session import LiveSession
from livematch.services.sample_feed_client import SampleFeedClient
from livematch.services.websocket_relay import serialize_matches, serialize_metrics

router = APIRouter(prefix="/api", tags=["matches"])


def get_session(request: Request) -> LiveSession:
    return request.app.state.live_session


@router.get("/matches")
async def list_matches(session: LiveSession = Depends(get_session)):
    """Latest debounced joined view, most recent start time first."""
    output = session.coordinator.output
    return {
        "items": serialize_matches(output.matches.value),
        "is_loading": output.is_loading.value,
    }


@router.get("/metrics")
async def store_metrics(session: LiveSession = Depends(get_session)):
    return serialize_metrics(await session.store.current_metrics())


@router.get("/telemetry")
async def telemetry(session: LiveSession = Depends(get_session)):
    return session.telemetry.current_metrics().to_dict()


@router.get("/status")
async def status(session: LiveSession = Depends(get_session)):
    output = session.coordinator.output
    return {
        "is_loading": output.is_loading.value,
        "error_message": output.error_message.value,
        "feed_running": session.feed.is_running,
        "metrics_logging": session.coordinator.metrics_logging_active,
        "streams": {
            "matches": session.store.data_stream.stats(),
            "metrics": session.store.metrics_stream.stats(),
        },
        "websocket": session.websocket_manager.stats(),
    }


@router.post("/refresh")
async def manual_refresh(session: LiveSession = Depends(get_session)):
    await session.coordinator.handle(CoordinatorEvent.manual_refresh)
    return {"count": len(session.coordinator.output.matches.value)}


@router.post("/ui-applied")
async def ui_applied(session: LiveSession = Depends(get_session)):
    await session.coordinator.handle(CoordinatorEvent.ui_applied)
    return serialize_metrics(await session.store.current_metrics())


@router.post("/feed/start")
async def start_feed(session: LiveSession = Depends(get_session)):
    await session.coordinator.handle(CoordinatorEvent.started)
    return {"feed_running": session.feed.is_running}


@router.post("/feed/stop")
async def stop_feed(session: LiveSession = Depends(get_session)):
    await session.coordinator.handle(CoordinatorEvent.stopped)
    return {"feed_running": session.feed.is_running}


@router.get("/prometheus")
async def prometheus_metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _sample_source(session: LiveSession) -> SampleFeedClient:
    if not isinstance(session.source, SampleFeedClient):
        raise HTTPException(status_code=404, detail="Upstream source has no sample payloads.")
    return session.source


@router.get("/source/matches")
async def source_matches(
    count: int = Query(5, ge=1, le=500),
    session: LiveSession = Depends(get_session),
):
    """Freshly generated ``GET /matches`` payload as the upstream API would send it."""
    return Response(content=_sample_source(session).matches_json(count), media_type="application/json")


@router.get("/source/odds")
async def source_odds(
    count: int = Query(5, ge=1, le=500),
    session: LiveSession = Depends(get_session),
):
    return Response(content=_sample_source(session).odds_json(count), media_type="application/json")
