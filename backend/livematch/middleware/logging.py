import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from livematch.config import settings

logger = logging.getLogger("livematch.http")

REQUEST_ID_HEADER = "X-Request-ID"


def _route_label(request: Request) -> str | None:
    route = request.scope.get("route")
    return getattr(route, "path", None)


def _feed_running(request: Request) -> bool | None:
    session = getattr(request.app.state, "live_session", None)
    if session is None:
        return None
    return session.feed.is_running


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """One JSON log line per request, tagged with the matched route and feed state."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # keep a caller-supplied id so client and server logs line up
        request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip()[:64] or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start = time.perf_counter()

        response: Response = await call_next(request)

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "route": _route_label(request),
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            "feed_running": _feed_running(request),
        }

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(level, json.dumps(log_data))

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
