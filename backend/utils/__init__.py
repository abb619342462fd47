"""
Rewatch Utilities Package.

Configuration and logging shared by the watcher packages.
Requires Python 3.11+.
"""

from utils.config import LoggingSettings, Settings, WatcherSettings, get_settings
from utils.logger import configure_logging, get_logger, logger, LoggerMixin

__all__ = [
    "Settings",
    "WatcherSettings",
    "LoggingSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "logger",
    "LoggerMixin",
]
