# src/ledgerlab/core/logging.py
"""Structured logging setup.

All modules log through structlog with event names and key/value context.
configure_logging() is called once by the CLI; library code only calls
get_logger().
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog to write to stderr.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_output: Render JSON lines instead of the console format
    """
    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a lazy structlog logger, tagged with the module name.

    The proxy resolves configuration on each call, so module-level loggers
    pick up configure_logging() even when created before it runs. The name is
    bound as the "module" context key.
    """
    if name is not None:
        return structlog.get_logger(module=name)
    return structlog.get_logger()
