"""
structlog setup.

Console output in development, one JSON object per line elsewhere. Events
logged during an HTTP request also carry the request_id bound by the
logging middleware.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from stockledger.config.settings import get_settings

# Chatty at INFO/DEBUG; aiosqlite logs every statement
QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


def _service_context() -> Processor:
    settings = get_settings()
    context = {
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }

    def add_service_context(_: Any, __: str, event_dict: EventDict) -> EventDict:
        for key, value in context.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_context


def configure_logging(level: str | None = None) -> None:
    """Configure structlog and the stdlib root logger it writes through."""
    settings = get_settings()
    level = level or settings.log_level

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(),
    ]
    if settings.environment == "development" or settings.api.debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger, usually get_logger(__name__)."""
    return structlog.get_logger(name)
