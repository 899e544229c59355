"""Observability module for the danmaku client.

Structured logging (structlog) and in-process counters.

Example:
    >>> from danmaku.observability import get_logger, get_metrics
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("danmaku.session.open", room_id="12345")
    >>>
    >>> get_metrics().increment_counter("danmaku_messages_received_total")
"""

from danmaku.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from danmaku.observability.metrics import (
    MetricsCollector,
    get_metrics,
    reset_metrics,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_metrics",
    "reset_metrics",
    "MetricsCollector",
]
