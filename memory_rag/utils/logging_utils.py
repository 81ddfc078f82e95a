# ============================================
# Logging Utilities Module
# ============================================
"""
Logging setup shared by the CLI entry points.

Library modules only create loggers with logging.getLogger(__name__);
handlers are installed here, once, by whoever runs the process.
"""

import logging
from typing import Union


LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level: Union[str, int] = "INFO", verbose: bool = False) -> None:
    """
    Configure root logging.

    Args:
        level: Logging level name or number
        verbose: Force DEBUG regardless of level
    """
    if verbose:
        level = logging.DEBUG
    elif isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger().setLevel(level)


def preview(text: str, limit: int = 50) -> str:
    """Shorten text for log lines."""
    return text if len(text) <= limit else f"{text[:limit]}..."
