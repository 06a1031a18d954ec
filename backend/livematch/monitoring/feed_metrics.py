"""
backend/livematch/monitoring/feed_metrics.py

Purpose:
    Prometheus metrics for the odds store, update feed and render
    acknowledgements.

Dependencies:
    - prometheus_client
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

METRIC_UPDATES_RECEIVED = Counter(
    "livematch_odds_updates_received_total",
    "Odds updates that changed store state.",
)
METRIC_UPDATES_IGNORED = Counter(
    "livematch_odds_updates_ignored_total",
    "Odds updates accepted without a state change.",
    ["reason"],
)
METRIC_UI_UPDATES = Counter(
    "livematch_ui_updates_total",
    "Render cycles acknowledged by consumers.",
    ["update_type"],
)
METRIC_ERRORS = Counter(
    "livematch_errors_total",
    "Errors reported to telemetry.",
    ["context"],
)
METRIC_UPDATE_LATENCY = Histogram(
    "livematch_odds_update_latency_seconds",
    "Store-side processing time of one odds update.",
    buckets=(0.00001, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
)
METRIC_JOINED_VIEW_SIZE = Gauge(
    "livematch_joined_view_size",
    "Matches with odds in the latest rendered view.",
)
