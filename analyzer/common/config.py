"""
Configuration Dataclasses

Type-safe configuration structures for the poller and the CLI.
Loaded from a YAML file or built from environment settings by the API.
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .exceptions import ConfigError


MAX_UNIT_ID = 247


@dataclass
class DeviceConfig:
    """Power analyzer connection settings"""
    address: str  # host, host:port or [ipv6]:port
    unit_id: int = 1
    timeout_s: float = 3.0  # Per-request read timeout


@dataclass
class LoggingSettings:
    """Log output configuration"""
    level: str = "INFO"
    json_format: bool = True


@dataclass
class AnalyzerConfig:
    """Complete configuration for one power analyzer"""
    device: DeviceConfig
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def validate_device_config(device: DeviceConfig) -> DeviceConfig:
    """Reject settings the transport cannot use"""
    if not device.address or not device.address.strip():
        raise ConfigError("device address is required")
    if not 0 <= device.unit_id <= MAX_UNIT_ID:
        raise ConfigError(f"unit_id must be 0-{MAX_UNIT_ID}, got {device.unit_id}")
    if device.timeout_s <= 0:
        raise ConfigError(f"timeout_s must be positive, got {device.timeout_s}")
    return device


def load_analyzer_config(data: dict) -> AnalyzerConfig:
    """Load AnalyzerConfig from dictionary (e.g., from YAML file)"""
    device_data = data.get("device") or {}
    if not isinstance(device_data, dict):
        raise ConfigError("[device] section must be a mapping")

    try:
        device = DeviceConfig(
            address=str(device_data.get("address", "")).strip(),
            unit_id=int(device_data.get("unit_id", 1)),
            timeout_s=float(device_data.get("timeout_s", 3.0)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid device settings: {e}") from e

    logging_data = data.get("logging") or {}
    logging_settings = LoggingSettings(
        level=str(logging_data.get("level", "INFO")).upper(),
        json_format=bool(logging_data.get("json_format", True)),
    )

    return AnalyzerConfig(
        device=validate_device_config(device),
        logging=logging_settings,
    )


def load_config_file(config_path: str | Path) -> AnalyzerConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated AnalyzerConfig
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    return load_analyzer_config(data)
