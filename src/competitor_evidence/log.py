"""Logging configuration with Rich formatting.

Provides setup_logging() for caller initialization and get_logger() for module-level loggers.
The library never configures logging on import; callers opt in.
"""

import logging
from typing import Optional
from rich.logging import RichHandler
from .config import get_settings

LOGGER_PREFIX = "competitor_evidence"

def setup_logging(level: Optional[str] = None):
    settings = get_settings()
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)]
    )

    # Quiet down some noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("trafilatura").setLevel(logging.WARNING)

def get_logger(name: str):
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")
