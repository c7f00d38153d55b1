"""Structured logging setup.

structlog renders JSON events on top of the standard library logging
machinery, so third-party loggers (httpx, uvicorn) end up in the same stream.
"""
import logging
import sys

import structlog


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog processors and the root stdlib handler."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def get_logger(name: str):
    return structlog.get_logger(name)
