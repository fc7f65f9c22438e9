"""
Bravia RPC - Logging

structlog setup for applications embedding the client. The library itself
only calls ``structlog.get_logger``; nothing is configured on import.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import Settings


def configure_logging(level: Optional[str] = None, json_output: bool = True) -> None:
    """Configure structlog on top of stdlib logging.

    Without ``level`` the ``BRAVIA_LOG_LEVEL`` setting is used.
    """
    if level is None:
        level = Settings().log_level
    log_level = getattr(logging, str(level).upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level, force=True)

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
