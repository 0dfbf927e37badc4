"""
Logging configuration for indexprof

All modules log through children of the ``indexprof`` logger. The console
handler writes to stderr; stdout carries only the report.
"""

import sys
import logging
import time
from pathlib import Path
from typing import Optional, TextIO
from logging.handlers import TimedRotatingFileHandler

from indexprof.core.constants import APP_NAME, LOG_FILE

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name on a terminal"""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str = CONSOLE_FORMAT, datefmt: str = "%H:%M:%S",
                 stream: Optional[TextIO] = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if not self.use_colors or color is None:
            return super().format(record)
        # Other handlers must still see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


class IndexProfLogger:
    """Owns the handlers attached to the application logger"""

    _instance: Optional['IndexProfLogger'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.logger = logging.getLogger(APP_NAME)
        return cls._instance

    def setup(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        file_enabled: bool = False,
        retention_days: int = 7,
        console_colors: bool = True,
    ) -> logging.Logger:
        """
        Replace the application handlers

        Args:
            level: Console level name; unknown names mean INFO
            log_dir: Directory for the daily rotated log file
            file_enabled: Also log everything at DEBUG to ``log_dir``
            retention_days: Rotated files to keep
            console_colors: Color level names when stderr is a terminal

        Returns:
            The application logger
        """
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        console_level = getattr(logging, str(level).upper(), logging.INFO)
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(console_level)
        console.setFormatter(ColoredFormatter(stream=sys.stderr, use_colors=console_colors))
        self.logger.addHandler(console)
        self.logger.setLevel(console_level)

        if file_enabled and log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = TimedRotatingFileHandler(
                log_dir / LOG_FILE,
                when='midnight',
                backupCount=max(1, int(retention_days)),
                encoding='utf-8',
            )
            file_handler.suffix = "%Y-%m-%d"
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, "%Y-%m-%d %H:%M:%S"))
            self.logger.addHandler(file_handler)
            # The file records DEBUG even when the console is quieter
            self.logger.setLevel(logging.DEBUG)

        return self.logger


_app_logger: Optional[IndexProfLogger] = None


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    file_enabled: bool = False,
    retention_days: int = 7,
) -> logging.Logger:
    """Configure the application logger; call once at startup"""
    global _app_logger
    _app_logger = IndexProfLogger()
    return _app_logger.setup(
        level=level,
        log_dir=log_dir,
        file_enabled=file_enabled,
        retention_days=retention_days,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Child of the application logger

    Nothing is configured here, so module-level ``get_logger('services')``
    calls are safe before ``setup_logging()`` runs.
    """
    base = logging.getLogger(APP_NAME)
    return base.getChild(name) if name else base


def log_exception(logger: logging.Logger, exc: Exception, message: str = "") -> None:
    """Log ``exc`` at ERROR with its traceback"""
    logger.error(f"{message or 'Unexpected error'}: {exc}", exc_info=exc)


class LogContext:
    """
    Logs start, end and duration of a block

    Example:
        >>> with LogContext(logger, "Collecting samples"):
        ...     source.get_samples("test")
        # Collecting samples... started
        # Collecting samples... completed in 0.42s
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.log(self.level, f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.perf_counter() - self._started
        if exc_type is not None:
            self.logger.error(f"{self.operation}... failed after {elapsed:.2f}s: {exc_val}")
        else:
            self.logger.log(self.level, f"{self.operation}... completed in {elapsed:.2f}s")
        return False
