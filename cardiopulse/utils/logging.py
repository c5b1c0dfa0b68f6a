"""
Logging for the cardiopulse package.

Every module logs through ``get_logger(__name__)``, i.e. under the
``cardiopulse`` package logger. On import that logger only carries a
NullHandler, so an embedding application sees nothing unless it configures
logging itself or calls ``setup_logging``. Root handlers are never touched.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

from cardiopulse.config import Settings

PACKAGE_LOGGER = "cardiopulse"

# Marks handlers installed by setup_logging so a second call replaces them
_OWNED = "_cardiopulse_owned"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


class StructuredFormatter(logging.Formatter):
    """
    Single-line ``[UTC time] LEVEL [logger] message`` formatter.

    Colour codes are added only when ``use_color`` is set, which
    ``setup_logging`` does for interactive terminals.
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        line = f"[{timestamp}] {record.levelname:8} [{record.name}] {record.getMessage()}"

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"

        if self.use_color:
            color = self.COLORS.get(record.levelname, self.RESET)
            line = f"{color}{line}{self.RESET}"
        return line


def setup_logging(
    settings: Optional[Settings] = None,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Attach console (and optional file) output to the package logger.

    Meant for the process entry point (the demo, a service main). Calling it
    again replaces the handlers from the previous call.

    Args:
        settings: Source of ``log_level`` / ``log_file``
        level: Overrides ``settings.log_level``
        log_file: Overrides ``settings.log_file``
        stream: Console stream, stdout by default

    Returns:
        The configured ``cardiopulse`` logger
    """
    settings = settings or Settings()
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file
    stream = stream or sys.stdout

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in [h for h in package_logger.handlers if getattr(h, _OWNED, False)]:
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.setLevel(getattr(logging, level))
    # Output is handled here now; avoid duplicates through root handlers
    package_logger.propagate = False

    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(StructuredFormatter(use_color=stream.isatty()))
    setattr(console_handler, _OWNED, True)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        setattr(file_handler, _OWNED, True)
        package_logger.addHandler(file_handler)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass ``__name__``."""
    return logging.getLogger(name)
