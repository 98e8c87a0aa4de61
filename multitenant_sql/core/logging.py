"""
core/logging.py
---------------
Structured logging using structlog, routed through the stdlib `logging` tree.

Every logger in the package is a structlog logger wrapping
`logging.getLogger("multitenant_sql.<module>")`. As a library we only attach a
NullHandler: nothing is printed until the host application configures
logging, either its own way or by calling configure_logging().

configure_logging():
  DEBUG=true  → human-readable console output
  DEBUG=false → JSON (for log aggregators like Datadog, CloudWatch)

The tenant bound by core.context.with_tenant() is merged into every event
through structlog's contextvars processor.
"""

import logging
import sys
from typing import Optional

import structlog

from multitenant_sql.core.config import settings

LIBRARY_LOGGER = "multitenant_sql"

logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())


def configure_logging(level: Optional[int] = None) -> None:
    """Opt-in setup for applications; call once at startup."""
    if level is None:
        level = logging.DEBUG if settings.DEBUG else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger(LIBRARY_LOGGER).setLevel(level)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.DEBUG
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = LIBRARY_LOGGER):
    # Bound to a stdlib logger up front, so the stdlib level and handlers
    # decide what is emitted even when structlog was never configured.
    return structlog.wrap_logger(logging.getLogger(name))
