"""Shared pytest fixtures for danmaku client tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from danmaku.observability import reset_metrics

# Load danmaku.testing fixtures (mock_websocket, refused_connect)
pytest_plugins = ["danmaku.testing.fixtures"]


@pytest.fixture(autouse=True)
def _reset_metrics() -> Iterator[None]:
    """Start every test with zeroed counters."""
    reset_metrics()
    yield
    reset_metrics()
