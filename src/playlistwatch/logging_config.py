"""
Logging configuration for playlistwatch.

Sets up a rotating log file in the user config directory plus an optional
coloured console handler.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from . import config
from .constants import FileSystemConstants, LoggingConstants


class PlaylistWatchFormatter(logging.Formatter):
    """Formatter with optional ANSI colours for console output."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = False):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if self.use_colors:
            color = self.COLORS.get(record.levelname, '')
            if color:
                # Colour only the level name; the record is shared between handlers
                message = message.replace(
                    record.levelname, f"{color}{record.levelname}{self.COLORS['RESET']}", 1
                )
        return message


def setup_logging(
    log_level: str = LoggingConstants.DEFAULT_LOG_LEVEL,
    log_file: Optional[Path] = None,
    enable_console: bool = True,
    enable_colors: bool = True
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Root log level name
        log_file: Path to log file (None for <config dir>/logs/playlistwatch.log)
        enable_console: Whether to log to stderr as well
        enable_colors: Whether to colour console output (only on a TTY)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if log_file is None:
        log_dir = config.USER_CONFIG_DIR / FileSystemConstants.LOGS_DIR_NAME
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / FileSystemConstants.LOG_FILE_NAME

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LoggingConstants.MAX_LOG_SIZE,
        backupCount=LoggingConstants.BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setFormatter(PlaylistWatchFormatter(LoggingConstants.FILE_LOG_FORMAT))
    file_handler.setLevel(getattr(logging, LoggingConstants.FILE_LOG_LEVEL))
    root_logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            PlaylistWatchFormatter(
                LoggingConstants.CONSOLE_LOG_FORMAT,
                use_colors=enable_colors and sys.stderr.isatty(),
            )
        )
        console_handler.setLevel(getattr(logging, LoggingConstants.CONSOLE_LOG_LEVEL))
        root_logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def set_module_log_level(module_name: str, level: str) -> None:
    """Set log level for a specific module."""
    logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))
