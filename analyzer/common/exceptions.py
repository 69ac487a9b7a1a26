"""
Custom Exception Classes for the Power Analyzer Bridge

Hierarchical exception structure for error handling across the poller,
the command-line tool and the HTTP API.
"""


class AnalyzerError(Exception):
    """Base exception for all power analyzer errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(AnalyzerError):
    """Configuration-related errors"""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(f"Config Error: {message}", recoverable)


class DeviceError(AnalyzerError):
    """Device communication errors"""

    def __init__(
        self,
        message: str,
        device_address: str | None = None,
        recoverable: bool = True,
    ):
        self.device_address = device_address
        super().__init__(f"Device Error: {message}", recoverable)


class PollError(DeviceError):
    """Errors that abort a poll. No snapshot is produced."""


class TransportUnavailableError(PollError):
    """Connection to the device could not be established"""

    def __init__(
        self,
        message: str,
        device_address: str | None = None,
        host: str | None = None,
        port: int | None = None,
    ):
        self.host = host
        self.port = port
        super().__init__(message, device_address, recoverable=True)


class RegisterReadError(PollError):
    """A holding register read failed (timeout, bad response, dropped link)"""

    def __init__(
        self,
        register: int,
        cause: Exception | str,
        device_address: str | None = None,
    ):
        self.register = register
        self.cause = cause
        message = f"Read failed at register 0x{register:04x}: {cause}"
        super().__init__(message, device_address, recoverable=True)


class CloseError(DeviceError):
    """Releasing the connection failed. Diagnostic only."""

    def __init__(
        self,
        message: str,
        device_address: str | None = None,
    ):
        super().__init__(f"Close failed: {message}", device_address, recoverable=True)
