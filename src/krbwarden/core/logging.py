"""
structlog setup for processes embedding krbwarden.

Library modules only call structlog.get_logger(); the host decides
how events are rendered.
"""

import logging
import sys

import structlog


def configure_logging(level: int = logging.INFO, json: bool = False) -> None:
    """
    Configure structlog output.

    Args:
        level: Minimum level to emit
        json: Render JSON lines instead of the console format
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
