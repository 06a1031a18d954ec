"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap for import paths and collaborator fixtures.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]

for candidate in (str(_BACKEND_DIR), str(_THIS_FILE.parent)):
    if candidate not in sys.path:
        sys.path.insert(0, candidate)

from fakes import FakeFeed, FakeFetcher, FakeMonitor, FakeTelemetry  # noqa: E402


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def telemetry() -> FakeTelemetry:
    return FakeTelemetry()


@pytest.fixture
def monitor() -> FakeMonitor:
    return FakeMonitor()


@pytest.fixture
def fake_feed() -> FakeFeed:
    return FakeFeed()
