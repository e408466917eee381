# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

Analysis workers and the real-time session pipeline log through the
standard library ``logging`` module; this module routes those records
through structlog so that context bound with ``bind_context`` (session,
student, course) is attached to every line.

Logs are rendered as JSON in production and as colored console output
in development.

Example:
    >>> from src.utils.logging import setup_logging, bind_context
    >>> from src.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> bind_context(session_id="s-1", user_id="u-1")
"""

import logging
import sys
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from src.core.config.settings import Settings


# Loggers from libraries that are too chatty at DEBUG level
_NOISY_LOGGERS = (
    "asyncio",
    "apscheduler",
    "apscheduler.scheduler",
    "apscheduler.executors.default",
    "dramatiq",
    "pika",
    "redis",
)


def build_processors(json_output: bool) -> list[Processor]:
    """Build the structlog processor chain.

    Args:
        json_output: Render JSON lines instead of console output.

    Returns:
        Ordered processor list ending with a renderer.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        return [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    return [
        *shared_processors,
        structlog.dev.ConsoleRenderer(colors=True),
    ]


def setup_logging(settings: "Settings") -> None:
    """Configure structured logging for workers and the analysis service.

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    json_output = not (settings.is_development or settings.debug)

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # stdlib records (logging.getLogger(__name__)) share the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer()
            if json_output
            else structlog.dev.ConsoleRenderer(colors=True),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("src").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in this context.

    Args:
        **kwargs: Key-value pairs to bind to the logging context.

    Example:
        >>> bind_context(session_id="abc-123", user_id="user-456")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables.

    Called at the end of each unit of work (one session update, one
    student scan) so context does not leak into the next one.
    """
    structlog.contextvars.clear_contextvars()


def log_context(**kwargs: object) -> AbstractContextManager[object]:
    """Bind context variables for the duration of a ``with`` block.

    Previous values are restored on exit, so nested units of work (a
    course scan fanning out to student scans) keep their own context.

    Example:
        >>> with log_context(user_id="user-456", course_id="c-1"):
        ...     logger.info("Scanning student")
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
