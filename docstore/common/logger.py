"""
Centralized logging configuration for the document repository layer.

Provides loggers tagged with the collection they work on for easy debugging.
Supports a global debug flag (DEBUG_MODE) for verbose logging.
"""

import logging
import os
import sys
from typing import Optional


# Global debug mode flag - can be set via environment or at runtime
_GLOBAL_DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"


def set_global_debug_mode(enabled: bool) -> None:
    """Set global debug mode."""
    global _GLOBAL_DEBUG_MODE
    _GLOBAL_DEBUG_MODE = enabled


def is_debug_mode() -> bool:
    """Check if debug mode is enabled globally."""
    return _GLOBAL_DEBUG_MODE


class RepositoryLogger:
    """
    Logger that prefixes every message with the collection it serves.
    """

    def __init__(
        self,
        name: str,
        collection: Optional[str] = None,
        debug_mode: Optional[bool] = None
    ):
        """
        Initialize repository logger.

        Args:
            name: Logger name (usually __name__)
            collection: Collection name added to every message
            debug_mode: If True, enables DEBUG level for this logger.
                       If None, uses global debug mode setting.
        """
        self.logger = logging.getLogger(name)
        self.collection = collection

        self._debug_mode = debug_mode if debug_mode is not None else is_debug_mode()

        if self._debug_mode:
            self.logger.setLevel(logging.DEBUG)

    @property
    def level(self) -> int:
        """Get current logging level."""
        return self.logger.level

    def _format_message(self, message: str) -> str:
        if self.collection:
            return f"[collection:{self.collection}] {message}"
        return message

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._format_message(message), **kwargs)

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_message(message), **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_message(message), **kwargs)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure global logging settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format ("simple" or "json")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Remove existing handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if format == "json":
        # JSON format for production (parseable by log aggregators)
        formatter = logging.Formatter(
            '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(
    name: str,
    collection: Optional[str] = None,
    debug_mode: Optional[bool] = None
) -> RepositoryLogger:
    """
    Get a repository logger instance.

    Args:
        name: Logger name (usually __name__)
        collection: Optional collection name
        debug_mode: If True, enables DEBUG level. If None, uses global setting.

    Returns:
        RepositoryLogger instance
    """
    return RepositoryLogger(name, collection, debug_mode)
