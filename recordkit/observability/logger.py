"""
Structured logging for recordkit

All loggers live below the ``recordkit`` package logger, which owns the only
handler. Records are formatted as JSON with python-json-logger; the record and
field a message is about are folded into a single ``subject`` key
(``"Person.age"``) so log lines about one field can be grepped together.

Environment:
    LOG_LEVEL: DEBUG, INFO, WARNING (default), ERROR or CRITICAL
    LOG_FORMAT: "json" (default) or "text"
"""
import logging
import os
import sys
import time
from typing import IO

from pythonjsonlogger import jsonlogger

PACKAGE_LOGGER = "recordkit"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


class RecordJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for validation logs

    Adds: timestamp, level, logger, location and subject
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", self.formatTime(record, self.datefmt))
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}:{record.funcName}"

        subject = ".".join(
            str(log_record.pop(key)) for key in ("record", "field") if log_record.get(key) is not None
        )
        if subject:
            log_record["subject"] = subject


def configure_logging(
    level: str | None = None,
    format_type: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """
    (Re)configure the package logger

    Args:
        level: Log level name (defaults to env var LOG_LEVEL or WARNING)
        format_type: "json" or "text" (defaults to env var LOG_FORMAT or "json")
        stream: Output stream (defaults to stderr)

    Returns:
        The package logger
    """
    level_name = (level or os.getenv("LOG_LEVEL", "WARNING")).upper()
    format_type = format_type or os.getenv("LOG_FORMAT", "json")

    handler = logging.StreamHandler(stream or sys.stderr)
    if format_type == "json":
        handler.setFormatter(RecordJsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(LOG_LEVELS.get(level_name, logging.WARNING))
    package_logger.handlers = [handler]
    # Applications attach their own handlers to the root logger
    package_logger.propagate = False
    return package_logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Get a logger below the package logger

    Names outside the ``recordkit`` namespace are nested under it. The package
    logger is configured from the environment on first use.

    Args:
        name: Logger name, usually __name__

    Returns:
        Logger instance
    """
    if not logging.getLogger(PACKAGE_LOGGER).handlers:
        configure_logging()

    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


class log_operation:
    """
    Context manager logging the duration and outcome of an operation

    Usage:
        with log_operation("Validating batch", logger=logger, record="Person"):
            # do work
            pass
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting: {self.operation_name}", extra=self.extra_fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        extra = {
            "operation": self.operation_name,
            "duration_seconds": round(time.perf_counter() - self.start_time, 6),
            **self.extra_fields,
        }
        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation_name}", extra=extra)
        else:
            self.logger.error(
                f"Failed: {self.operation_name}",
                extra={**extra, "error_type": exc_type.__name__, "error_message": str(exc_val)},
            )
        return False
