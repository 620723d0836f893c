"""
Centralized logging module for casino-client.
Provides colored console output, JSON output and optional file logging with
rotation. Bearer tokens never reach a handler: every record passes through
TokenRedactingFilter first.
"""

import logging
import re
import sys
import json
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


# ANSI color codes for console output
class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-_.=+/]+")
# Quoted keys only, as in JSON bodies and dict reprs
_TOKEN_FIELD_RE = re.compile(r"""((["'])(?:access|refresh|accessToken|refreshToken)\2\s*:\s*(["']))[^"']+(?=\3)""")


def redact(text: str) -> str:
    """Mask bearer headers and access/refresh token values in a log line."""
    text = _BEARER_RE.sub(r"\1***", text)
    return _TOKEN_FIELD_RE.sub(r"\1***", text)


class TokenRedactingFilter(logging.Filter):
    """Rewrites the record message so credentials are never written out."""

    def filter(self, record):
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colored output for console."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.MAGENTA,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        timestamp = self.formatTime(record, "%H:%M:%S")
        level = f"{color}{record.levelname:<8}{Colors.RESET}"
        name = f"{Colors.CYAN}{record.name}{Colors.RESET}"
        return f"{Colors.GRAY}{timestamp}{Colors.RESET} | {level} | {name} | {record.getMessage()}"


class PlainFormatter(logging.Formatter):
    """Plain formatter for file output (no colors)."""

    def format(self, record):
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        line = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with any `extra=` fields merged in."""

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_record[key] = value

        return json.dumps(log_record, default=str)


def setup_logger(
    name: str = "casino-client",
    level: str = "INFO",
    log_to_file: bool = False,
    log_file_path: Optional[Path] = None,
    max_file_size: int = 2 * 1024 * 1024,  # 2MB
    backup_count: int = 3,
    formatter: str = "color",
) -> logging.Logger:
    """
    Set up and configure the client logger.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to also log to a file
        log_file_path: Path for log file (defaults to data/client.log)
        max_file_size: Max size of log file before rotation
        backup_count: Number of backup files to keep
        formatter: "color", "plain" or "json" for the console handler

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Re-initialisation replaces handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    redactor = TokenRedactingFilter()

    console_handler = logging.StreamHandler(sys.stderr)
    if formatter == "json":
        console_handler.setFormatter(JsonFormatter())
    elif formatter == "plain":
        console_handler.setFormatter(PlainFormatter())
    else:
        console_handler.setFormatter(ColoredFormatter())
    console_handler.addFilter(redactor)
    logger.addHandler(console_handler)

    if log_to_file:
        try:
            if log_file_path is None:
                log_file_path = Path(__file__).parent.parent.parent / "data" / "client.log"

            log_file_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file_path, maxBytes=max_file_size, backupCount=backup_count
            )
            file_handler.setFormatter(PlainFormatter())
            file_handler.addFilter(redactor)
            logger.addHandler(file_handler)
        except OSError as e:
            sys.stderr.write(f"WARNING: Could not set up file logging: {e}\n")
            sys.stderr.write("Continuing with console logging only.\n")

    logger.propagate = False

    return logger


_app_logger: Optional[logging.Logger] = None


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance. If name is provided, returns a child logger.

    Args:
        name: Optional sub-logger name (e.g., "transport", "account")
    """
    global _app_logger

    if _app_logger is None:
        _app_logger = setup_logger()

    if name:
        return _app_logger.getChild(name)
    return _app_logger


def init_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    formatter: str = "color",
    log_file_path: Optional[Path] = None,
):
    """
    Initialize the client logging system.
    Should be called once when a session is created.
    """
    global _app_logger
    _app_logger = setup_logger(
        level=level,
        log_to_file=log_to_file,
        log_file_path=log_file_path,
        formatter=formatter,
    )
    _app_logger.debug(f"Logging initialized at {level} level")
