"""structlog setup for the danmaku client.

Records from structlog loggers and from plain ``logging`` loggers (the
``websockets`` library logs through the standard library) share one
processor chain and one handler on the root logger. The handler writes to
stderr so that ``danmaku watch`` can keep stdout for chat lines.

Environment Variables:
    DANMAKU_LOG_FORMAT: "console" (default, colored) or "json"
    DANMAKU_LOG_LEVEL: Minimum level name, default INFO
    DANMAKU_SERVICE_NAME: Value of the ``service`` key on every record

Example:
    >>> configure_logging(log_format="json", log_level="DEBUG")
    >>> get_logger("danmaku.transport.session").info("danmaku.session.open", room_id="12345")
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"
DEFAULT_SERVICE_NAME = "danmaku-client"

ENV_LOG_FORMAT = "DANMAKU_LOG_FORMAT"
ENV_LOG_LEVEL = "DANMAKU_LOG_LEVEL"
ENV_SERVICE_NAME = "DANMAKU_SERVICE_NAME"

_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})

_configured = False


class _ServiceNameAdder:
    """Stamp every record with the configured service name."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", self.service_name)
        return event_dict


def _pre_chain(service_name: str) -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _ServiceNameAdder(service_name),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def _final_processors(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    force: bool = False,
) -> None:
    """Install the danmaku log pipeline on the root logger.

    Arguments left as None fall back to the ``DANMAKU_*`` environment
    variables, then to the module defaults.

    Args:
        log_format: "json" or "console"
        log_level: Minimum level name, case-insensitive
        service_name: Value of the ``service`` key
        force: Replace an existing configuration instead of keeping it
    """
    global _configured

    if _configured and not force:
        return

    log_format = (log_format or os.environ.get(ENV_LOG_FORMAT) or DEFAULT_LOG_FORMAT).lower()
    level_name = (log_level or os.environ.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    service_name = service_name or os.environ.get(ENV_SERVICE_NAME) or DEFAULT_SERVICE_NAME

    pre_chain = _pre_chain(service_name)
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_final_processors(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.getLevelName(level_name) if level_name in _LEVELS else logging.INFO)

    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, installing the default pipeline on first use."""
    if not _configured:
        configure_logging()
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every later record in this context.

    Example:
        >>> bind_context(room_id="12345")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
