"""
Logging setup for the facility responder.

Every line logged while a response executes is tagged with that response's
ID, so one incident can be followed across handlers and actuators.
"""

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.responder.core.config import LoggingConfig

_active_response: ContextVar[str | None] = ContextVar("active_response", default=None)


class ResponseIdFilter(logging.Filter):
    """Stamp records with the ID of the response executing in this context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.response_id = _active_response.get()
        return True


class ResponseFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        response_id = getattr(record, "response_id", None)
        if response_id:
            record.msg = f"[{response_id}] {record.getMessage()}"
            record.args = ()
        return super().format(record)


def setup_logging(settings: "LoggingConfig") -> None:
    """
    Install console, rotating file and journal handlers on the root logger.

    Args:
        settings: The logging section of the loaded configuration
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = []
    if settings.LOG_ENABLE_CONSOLE:
        handlers.append(logging.StreamHandler(sys.stdout))

    if settings.LOG_ENABLE_FILE and settings.LOG_FILE_PATH:
        Path(settings.LOG_FILE_PATH).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                settings.LOG_FILE_PATH,
                maxBytes=settings.LOG_FILE_MAX_BYTES,
                backupCount=settings.LOG_FILE_BACKUP_COUNT,
            )
        )

    if settings.LOG_ENABLE_JOURNAL:
        try:
            from systemd.journal import JournalHandler

            handlers.append(JournalHandler(SYSLOG_IDENTIFIER="facility-responder"))
        except ImportError:
            # Journal output needs the optional systemd-python package
            if sys.platform.startswith("linux"):
                logging.warning("systemd-python not installed, journal logging disabled")

    formatter = ResponseFormatter(settings.LOG_FORMAT)
    response_filter = ResponseIdFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(response_filter)
        root_logger.addHandler(handler)

    logging.info(f"Logging configured with level: {settings.LOG_LEVEL}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Tag log records with a response ID for the duration of a block.

    Nested blocks restore the outer response's ID on exit.
    """

    def __init__(self, response_id: str):
        self.response_id = response_id
        self._token = None

    def __enter__(self) -> str:
        self._token = _active_response.set(self.response_id)
        return self.response_id

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        _active_response.reset(self._token)


def log_event(logger: logging.Logger, level: int, message: str, **fields: Any) -> None:
    """Log `message` followed by `key=value` pairs for each field."""
    if fields:
        message = f"{message} | " + " ".join(f"{k}={v}" for k, v in fields.items())
    logger.log(level, message)


def log_info(logger: logging.Logger, message: str, **fields: Any) -> None:
    log_event(logger, logging.INFO, message, **fields)


def log_warning(logger: logging.Logger, message: str, **fields: Any) -> None:
    log_event(logger, logging.WARNING, message, **fields)


def log_error(logger: logging.Logger, message: str, **fields: Any) -> None:
    log_event(logger, logging.ERROR, message, **fields)
