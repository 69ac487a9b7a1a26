"""
Structured Logging Setup

Consistent logging configuration for the poller, CLI and API.
Uses JSON format for structured logs in production.
"""

import logging
import sys
import os
from datetime import datetime, timezone
from typing import Any, TextIO
import json


# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "service",
    "message", "taskName",
))


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds service name to all logs"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Set up structured logging for a service.

    Args:
        service_name: Name of the service (e.g., "device.poller", "api")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True for production, False for dev)
        stream: Output stream (default: stdout)

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(f"analyzer.{service_name}")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)

    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger adapter with service context.

    Level and format can be overridden with ANALYZER_LOG_LEVEL and
    ANALYZER_LOG_FORMAT ("json" or "text").

    Args:
        service_name: Name of the service

    Returns:
        Logger adapter with service name in all logs
    """
    log_level = os.environ.get("ANALYZER_LOG_LEVEL", "INFO")
    json_format = os.environ.get("ANALYZER_LOG_FORMAT", "json").lower() == "json"

    logger = setup_logging(service_name, log_level, json_format)
    return ServiceLoggerAdapter(logger, {"service": service_name})


def log_device_read(
    logger: logging.Logger | logging.LoggerAdapter,
    device_address: str,
    register: int,
    value: Any,
    success: bool = True,
) -> None:
    """Log a device register read operation"""
    if success:
        logger.debug(
            f"Read {device_address}@0x{register:04x} = {value}",
            extra={"device": device_address, "register": register, "value": value},
        )
    else:
        # The poll outcome carries the warning
        logger.debug(
            f"Failed to read {device_address}@0x{register:04x}",
            extra={"device": device_address, "register": register},
        )


def log_poll_result(
    logger: logging.Logger | logging.LoggerAdapter,
    device_address: str,
    execution_time_ms: float,
    error: Exception | None = None,
) -> None:
    """Log the outcome of one device poll"""
    if error is None:
        logger.info(
            f"Poll {device_address}: ok, exec={execution_time_ms:.0f}ms",
            extra={
                "device": device_address,
                "execution_time_ms": execution_time_ms,
            },
        )
    else:
        logger.warning(
            f"Poll {device_address}: failed after {execution_time_ms:.0f}ms: {error}",
            extra={
                "device": device_address,
                "execution_time_ms": execution_time_ms,
                "register": getattr(error, "register", None),
            },
        )


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Reconfigure every service logger created so far"""
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("analyzer."):
            setup_logging(name[len("analyzer."):], log_level, json_format, stream)
