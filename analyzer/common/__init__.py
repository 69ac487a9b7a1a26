"""
Common Utilities

Shared modules used by the poller, CLI and API:
- config.py - Configuration dataclasses
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
"""

from .config import (
    AnalyzerConfig,
    DeviceConfig,
    LoggingSettings,
    load_analyzer_config,
    load_config_file,
    validate_device_config,
)
from .exceptions import (
    AnalyzerError,
    ConfigError,
    DeviceError,
    PollError,
    TransportUnavailableError,
    RegisterReadError,
    CloseError,
)
from .logging_setup import (
    setup_logging,
    configure_logging,
    get_service_logger,
    log_device_read,
    log_poll_result,
)

__all__ = [
    # Config
    "AnalyzerConfig",
    "DeviceConfig",
    "LoggingSettings",
    "load_analyzer_config",
    "load_config_file",
    "validate_device_config",
    # Exceptions
    "AnalyzerError",
    "ConfigError",
    "DeviceError",
    "PollError",
    "TransportUnavailableError",
    "RegisterReadError",
    "CloseError",
    # Logging
    "setup_logging",
    "configure_logging",
    "get_service_logger",
    "log_device_read",
    "log_poll_result",
]
