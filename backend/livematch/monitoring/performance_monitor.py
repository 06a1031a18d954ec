"""Render tracking for consumers that acknowledge applied UI updates."""

from __future__ import annotations

import logging

from livematch.models.matches import UIUpdateType

logger = logging.getLogger("livematch.performance")


class PerformanceMonitor:
    def __init__(self) -> None:
        self.tracked_total = 0
        self.last_matches_count: int | None = None

    def track_ui_update(self, matches_count: int, update_type: UIUpdateType) -> None:
        self.tracked_total += 1
        self.last_matches_count = matches_count
        logger.debug("Render tracked matches=%d type=%s", matches_count, update_type.value)
