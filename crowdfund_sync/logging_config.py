"""structlog setup shared by the CLI and scripts."""

import logging
from typing import Optional, TextIO

import structlog


def configure_logging(level: str = "INFO", json: bool = False, file: Optional[TextIO] = None) -> None:
    """
    Configure structlog output.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json: Emit JSON lines instead of colored console output
        file: Where log lines go (default stdout)
    """
    processors = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=file),
    )
