"""Logging configuration for the billing API, scheduler and CLI.

Every process writes the same lines to stdout and to LOG_FILE, so a billing run
started by the scheduler, the admin API or the CLI leaves the same trail.
LOG_LEVEL picks the level (default INFO); DEBUG also shows every skipped member.
"""

import logging
import os
import sys
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers kept at WARNING unless LOG_LEVEL is DEBUG
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx")


def get_log_level() -> int:
    """Get logging level from LOG_LEVEL environment variable.

    Returns:
        Logging level constant (default: INFO)
    """
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_server_logging(log_file: str = "logs/billing.log") -> None:
    """Send root logger output to stdout and log_file.

    Safe to call more than once: existing root handlers are replaced.

    Args:
        log_file: Path to log file, parent directories are created
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = get_log_level()
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root_logger.setLevel(level)
    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level, formatter))
    root_logger.addHandler(_handler(logging.FileHandler(log_path), level, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
