"""
Core module - Configuration, constants, exceptions, and utilities

Provides:
- Settings/Config management
- Custom exceptions
- Logging
- Reader/writer lock used by the aggregator
"""

from indexprof.core.config import Settings, get_settings, reset_settings
from indexprof.core.constants import *
from indexprof.core.exceptions import *
from indexprof.core.logger import setup_logging, get_logger, LogContext
from indexprof.core.rwlock import ReadWriteLock

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "reset_settings",
    # Logging
    "setup_logging",
    "get_logger",
    "LogContext",
    # Concurrency
    "ReadWriteLock",
]
