"""Logging configuration for SubAlign."""

import logging
import sys
from logging.handlers import RotatingFileHandler
import os
from typing import Optional

from tqdm import tqdm

from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
CONSOLE_LOG_FORMAT = '%(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Chatty loggers from the Gemini SDK and its HTTP stack
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "urllib3")

class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that prints through tqdm.write.

    Log lines emitted while a progress bar is active appear above the bar
    instead of breaking it. Output goes to stderr so stdout carries only the
    subtitle preview.
    """

    def __init__(self, level: int = logging.NOTSET, stream=None):
        super().__init__(level)
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)

def parse_log_level(name: Optional[str], default: int = logging.INFO) -> int:
    """Maps a level name such as 'debug' to its logging constant."""
    if not name or name.upper() not in LOG_LEVELS:
        return default
    return getattr(logging, name.upper())

def setup_logging(
    log_level: int = logging.INFO,
    log_dir: str = "logs",
    log_file: str = "subalign.log",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5
) -> None:
    """
    Configures logging for the application.

    Console output is short (level and message) and routed through tqdm; the
    rotating file keeps the full format with module and line number. Calling
    it again replaces the handlers installed by the previous call, so the CLI
    can start with a bootstrap log and switch to the configured one.

    Args:
        log_level: The minimum logging level (e.g., logging.INFO, logging.DEBUG).
        log_dir: The directory to store log files.
        log_file: The name of the log file.
        log_format: The format string for file log messages.
        date_format: The format string for timestamps in logs.
        max_bytes: Maximum size of a log file before rotation.
        backup_count: Number of backup log files to keep.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    root.setLevel(log_level)

    console_handler = TqdmLoggingHandler(level=log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
    root.addHandler(console_handler)

    try:
        ensure_dir_exists(log_dir)
        log_path = os.path.join(log_dir, log_file)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        root.addHandler(file_handler)
        root.debug(f"Logging initialized. Log file: {log_path}")
    except Exception as e:
        # Console handler is still in place
        root.error(f"Failed to set up file logging handler at {log_dir}/{log_file}: {e}", exc_info=True)

    # The SDK logs every request at INFO; only its problems matter here
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
