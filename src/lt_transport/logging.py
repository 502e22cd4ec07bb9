"""Structured logging for the client library.

Every module logs through ``get_logger(__name__)``, so all records land under
the ``lt_transport`` logger namespace. ``setup_logging()`` attaches a
structlog-rendering handler to that namespace only. ``bind_context()`` adds
key/value pairs to every event logged from the current task.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.types import Processor

    from lt_transport.config import Settings

LIBRARY_LOGGER = "lt_transport"

# Chatty third-party loggers: httpx logs every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")

logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())


def _processors(environment: str) -> tuple[list[Processor], Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if environment == "development":
        return shared, structlog.dev.ConsoleRenderer(colors=False)
    shared.append(structlog.processors.format_exc_info)
    return shared, structlog.processors.JSONRenderer(ensure_ascii=False)


def setup_logging(settings: Settings | None = None, stream: IO[str] | None = None) -> logging.Handler:
    """Route the library's structured events to ``stream`` (stderr by default).

    Only the ``lt_transport`` logger is touched; the root logger and the host
    application's handlers are left alone. Calling this again replaces the
    handler installed by the previous call.

    Returns:
        The installed handler.
    """
    if settings is None:
        from lt_transport.config import get_settings

        settings = get_settings()

    shared, renderer = _processors(settings.environment)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    handler.set_name(f"{LIBRARY_LOGGER}.structlog")

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    for existing in list(library_logger.handlers):
        if existing.get_name() == handler.get_name():
            library_logger.removeHandler(existing)
    library_logger.addHandler(handler)
    library_logger.setLevel(settings.log_level.upper())

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to every event logged from the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context(*keys: str) -> None:
    """Unbind ``keys``, or every context variable when none are given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()
