"""
Logging configuration and utilities for musix.

musix is a library: importing it never installs handlers. Every module
logs through get_logger(__name__), and applications that want console or
file output call setup_logging() once at startup.

Outputs installed by setup_logging():
    - Console: colored level name + message
    - Log file (optional): full detail with timestamps, size-rotated

Usage:
    from musix.core.logger import setup_logging, get_logger

    setup_logging(level="DEBUG", log_file="logs/musix.log")
    logger = get_logger(__name__)
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import TextIO

import colorama
from colorama import Back, Fore, Style


# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(name)-28s | %(levelname)-8s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log format for console output (compact)
CONSOLE_LOG_FORMAT = "%(levelname)s: %(message)s"

ROOT_LOGGER_NAME = "musix"

# Third-party loggers that are too chatty at DEBUG
QUIET_LIBRARIES = ("aiohttp", "aiohttp.access", "aiohttp.client", "urllib3", "asyncio")

_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name for terminal output."""

    COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    def __init__(self, fmt: str | None = None, use_colors: bool = True) -> None:
        super().__init__(fmt or CONSOLE_LOG_FORMAT)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors or record.levelname not in self.COLORS:
            return super().format(record)

        # Work on a copy so file handlers see the plain level name
        record_copy = logging.makeLogRecord(record.__dict__)
        record_copy.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{Style.RESET_ALL}"
        return super().format(record_copy)


def parse_size(size: str) -> int:
    """
    Parse a human-readable size such as "10MB" into bytes.

    Raises:
        ValueError: If the string is not a number followed by B/KB/MB/GB.
    """
    text = size.strip().upper()
    for unit in ("GB", "MB", "KB", "B"):
        if text.endswith(unit):
            number = text[: -len(unit)].strip()
            return int(float(number) * _SIZE_UNITS[unit])
    return int(text)


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    console_output: bool = True,
    colored_output: bool = True,
    max_size: str = "10MB",
    backup_count: int = 3,
    stream: TextIO | None = None
) -> logging.Logger:
    """
    Configure output for the musix logger hierarchy.

    Only the "musix" logger is touched; the application's root logger and
    handlers are left alone. Calling this again replaces the handlers
    installed by the previous call.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to a log file, or None to disable file logging.
                  The file always records DEBUG and above.
        console_output: Install the console handler.
        colored_output: Color level names on the console.
        max_size: File size that triggers rotation ("10MB", "512KB").
        backup_count: Number of rotated files to keep.
        stream: Console stream, defaults to stderr.

    Returns:
        The configured "musix" logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if colored_output:
        # Windows terminals need ANSI translation
        colorama.just_fix_windows_console()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    _remove_handlers(logger)

    if console_output:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(ColoredFormatter(use_colors=colored_output))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
        logger.addHandler(file_handler)

    for lib in QUIET_LIBRARIES:
        logging.getLogger(lib).setLevel(logging.WARNING)

    logger.debug(f"Logging initialized - Level: {level}, Console: {console_output}, File: {log_file}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Thin wrapper over logging.getLogger() so all modules name their
    loggers consistently (musix.spotify.client, musix.core.http, ...).

    Note:
        Until setup_logging() is called, records propagate to whatever the
        host application configured, or are dropped.
    """
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """
    Flush and remove the handlers installed by setup_logging().

    Records propagate to the host application again afterwards.

    Safe to call more than once.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    _remove_handlers(logger)
    logger.propagate = True


def _remove_handlers(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        finally:
            logger.removeHandler(handler)
