"""
Logging setup: console output plus rotating log files (10 MB x 5).
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(__file__).parent.parent.parent / "logs"
MAX_LOG_SIZE = 10 * 1024 * 1024
BACKUP_COUNT = 5

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "anthropic": logging.WARNING,
    "PyPDF2": logging.ERROR,
}


def _formatted(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def _log_file(filename: str, level: int) -> logging.Handler:
    LOG_DIR.mkdir(exist_ok=True)
    handler = RotatingFileHandler(
        LOG_DIR / filename, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    return _formatted(handler, level)


def setup_logging(
    app_name: str = "study_assistant",
    log_level: str = "",
    environment: str = "development",
    enable_console: bool = True,
    enable_file: bool = True,
) -> logging.Logger:
    """
    Configure the root logger.

    An empty ``log_level`` means DEBUG in development and WARNING in
    production. File logging writes ``<app_name>.log`` (everything) and
    ``<app_name>_error.log`` (errors only) under ``logs/``.
    """
    if not log_level:
        log_level = "WARNING" if environment == "production" else "DEBUG"
    console_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers filter
    root_logger.handlers.clear()

    if enable_console:
        root_logger.addHandler(_formatted(logging.StreamHandler(sys.stdout), console_level))
    if enable_file:
        root_logger.addHandler(_log_file(f"{app_name}.log", logging.DEBUG))
        root_logger.addHandler(_log_file(f"{app_name}_error.log", logging.ERROR))

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestLogger:
    """Logs one line per HTTP request, at a level chosen by status code."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        client_ip: str | None = None,
        session_id: str | None = None,
    ):
        context = []
        if client_ip:
            context.append(f"ip={client_ip}")
        if session_id:
            context.append(f"session={session_id[:8]}")

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        self.logger.log(
            level,
            f"{method} {path} -> {status_code} ({duration_ms:.2f}ms) {' | '.join(context)}".rstrip(),
        )
