"""
backend/livematch/monitoring/metrics_logger.py

Purpose:
    One-way telemetry sink for the live match session. Accumulates session
    counters, mirrors them to Prometheus and writes structured log lines,
    including the periodic aggregate performance report.

Dependencies:
    - livematch.monitoring.feed_metrics
    - livematch.models.matches
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from livematch.models.matches import UIUpdateType
from livematch.monitoring.feed_metrics import (
    METRIC_ERRORS,
    METRIC_JOINED_VIEW_SIZE,
    METRIC_UI_UPDATES,
    METRIC_UPDATE_LATENCY,
    METRIC_UPDATES_RECEIVED,
)
from livematch.utils import utcnow

logger = logging.getLogger("livematch.metrics")


@dataclass
class SessionMetrics:
    session_start_time: datetime = field(default_factory=utcnow)
    updates_received: int = 0
    ui_updates: int = 0
    errors: int = 0
    total_latency: float = 0.0
    last_update_time: datetime | None = None
    last_ui_update_time: datetime | None = None

    @property
    def session_duration(self) -> float:
        return (utcnow() - self.session_start_time).total_seconds()

    @property
    def average_latency(self) -> float:
        if self.updates_received <= 0:
            return 0.0
        return self.total_latency / self.updates_received

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["session_duration"] = round(self.session_duration, 3)
        out["average_latency"] = self.average_latency
        return out


class MetricsLogger:
    def __init__(self) -> None:
        self._session = SessionMetrics()

    def log_update_received(self, match_id: int, latency: float) -> None:
        self._session.updates_received += 1
        self._session.total_latency += latency
        self._session.last_update_time = utcnow()
        METRIC_UPDATES_RECEIVED.inc()
        METRIC_UPDATE_LATENCY.observe(latency)
        logger.debug("Update received match_id=%s latency=%.6fs", match_id, latency)

    def log_ui_update(self, matches_count: int, update_type: UIUpdateType) -> None:
        self._session.ui_updates += 1
        self._session.last_ui_update_time = utcnow()
        METRIC_UI_UPDATES.labels(update_type=update_type.name).inc()
        METRIC_JOINED_VIEW_SIZE.set(matches_count)
        logger.info("UI update type=%s matches=%d", update_type.value, matches_count)

    def log_error(self, error: BaseException, context: str) -> None:
        self._session.errors += 1
        METRIC_ERRORS.labels(context=context).inc()
        logger.error("Error in %s: %s", context, error)

    def log_performance_metrics(self) -> dict[str, Any]:
        snapshot = self._session.to_dict()
        logger.info(
            "Performance metrics updates_received=%d ui_updates=%d errors=%d "
            "average_latency=%.3fs session_duration=%.1fs",
            self._session.updates_received,
            self._session.ui_updates,
            self._session.errors,
            self._session.average_latency,
            self._session.session_duration,
        )
        return snapshot

    def current_metrics(self) -> SessionMetrics:
        return self._session

    def reset_session(self) -> None:
        self._session = SessionMetrics()
        logger.info("Session metrics reset")
