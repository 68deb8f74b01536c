"""Utility modules."""

from .config_loader import ConfigLoader
from .logger import setup_logger, get_logger, LoggerMixin, LogTimer

__all__ = [
    "ConfigLoader",
    "setup_logger",
    "get_logger",
    "LoggerMixin",
    "LogTimer",
]
