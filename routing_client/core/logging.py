"""
Structured logging configuration.

Features:
- JSON logging format for production
- Request ID tracking
- Structured event logging for the request client
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from routing_client.core.config import settings

# Context variable for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable log formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        request_id = request_id_var.get()
        context = f"[{request_id[:8]}]" if request_id else ""

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        return (
            f"{timestamp} {record.levelname:8} {context:10} "
            f"{record.name} - {record.getMessage()}"
        )


_client_handler: Optional[logging.Handler] = None


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    replace_handlers: bool = False,
) -> None:
    """
    Configure log output of the client.

    By default only the "routing_client" logger gets a stdout handler and
    stops propagating; the root logger stays with the embedding application.
    With replace_handlers=True the root logger is taken over instead: all of
    its handlers are removed and replaced by a single stdout handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR), defaults to LOG_LEVEL
        json_format: Use JSON format, defaults to LOG_JSON
        replace_handlers: Take over the root logger
    """
    global _client_handler

    level = level or settings.LOG_LEVEL
    if json_format is None:
        json_format = settings.LOG_JSON

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())

    client_logger = logging.getLogger("routing_client")
    if _client_handler is not None:
        client_logger.removeHandler(_client_handler)
        _client_handler = None

    if replace_handlers:
        root_logger = logging.getLogger()
        for existing in root_logger.handlers[:]:
            root_logger.removeHandler(existing)
        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, level.upper()))
        client_logger.propagate = True
    else:
        client_logger.addHandler(handler)
        client_logger.propagate = False
        _client_handler = handler

    loggers_config = {
        "routing_client": level,
        "httpx": "WARNING",
        "httpcore": "WARNING",
    }

    for logger_name, logger_level in loggers_config.items():
        logging.getLogger(logger_name).setLevel(getattr(logging, logger_level.upper()))


class StructuredLogger:
    """Logger that attaches structured fields to each record."""

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: int,
        msg: str,
        *args,
        extra: Optional[dict[str, Any]] = None,
        exc_info: bool = False,
    ):
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            msg,
            args,
            sys.exc_info() if exc_info else None,
        )
        if extra:
            record.extra_fields = extra
        self._logger.handle(record)

    def debug(self, msg: str, *args, extra: Optional[dict[str, Any]] = None):
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args, extra: Optional[dict[str, Any]] = None):
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args, extra: Optional[dict[str, Any]] = None):
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args, extra: Optional[dict[str, Any]] = None):
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args, extra: Optional[dict[str, Any]] = None):
        self._log(logging.ERROR, msg, *args, extra=extra, exc_info=True)

    def log(
        self,
        event: str,
        fields: Optional[dict[str, Any]] = None,
        *,
        message: Optional[str] = None,
        level: int = logging.INFO,
    ):
        """Emit a named event with structured fields."""
        extra = {"event": event, **(fields or {})}
        self._log(level, message or event, extra=extra)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger."""
    return StructuredLogger(name)
