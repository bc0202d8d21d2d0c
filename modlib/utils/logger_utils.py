# modlib/utils/logger_utils.py
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path

from modlib.core.constants import LOG_DIR_NAME

LOGGER_NAME = "modlib"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 10

_RESET = "\x1b[0m"
_LEVEL_COLORS = {
    logging.DEBUG: "\x1b[2m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[31;1m",
}


class ConsoleFormatter(logging.Formatter):
    """Short console lines. Warnings and errors are colored on a terminal."""

    def __init__(self, use_color: bool = False):
        super().__init__(fmt="%(asctime)s %(levelname)-8s %(message)s", datefmt="%H:%M:%S")
        self.use_color = use_color

    def format(self, record):
        line = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno) if self.use_color else None
        return f"{color}{line}{_RESET}" if color else line


_logger_instance = None


def configure_logging(log_dir=None) -> logging.Logger:
    """
    (Re)builds the handlers of the shared logger: INFO and up to stderr, so
    command output on stdout stays machine-readable, and everything to a
    rotating file in `log_dir`.
    """
    global _logger_instance
    log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / LOG_DIR_NAME
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H-%M-%S")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ConsoleFormatter(use_color=sys.stderr.isatty()))
    logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / f"{LOGGER_NAME}_{timestamp}.log",
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(module)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    _logger_instance = logger
    return logger


class _LazyLogger:
    # Importing `logger` must not create a log directory; the first call does.
    def __getattr__(self, name):
        return getattr(_logger_instance or configure_logging(), name)


logger = _LazyLogger()
__all__ = ["configure_logging", "logger"]
