"""structlog setup shared by every docgen module.

Modules ask for a named logger at import time::

    from app.utils.logging import get_logger

    logger = get_logger("resolvers.image")
    logger.warning("image_not_found", token=raw_token, path=path)

Events are snake_case names with keyword context, never pre-formatted strings.
``configure_logging`` is called once by entry points (the CLI); library code
never configures logging itself.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog rendering for a process entry point.

    Args:
        level:        Minimum level name (``DEBUG``, ``INFO``, ``WARNING`` ...).
        json_output:  Render one JSON object per line instead of the
                      human-readable console format.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to *name* (dotted module path)."""
    return structlog.get_logger(name)
