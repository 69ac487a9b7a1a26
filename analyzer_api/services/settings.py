"""
API Settings

Application settings loaded from environment variables and an optional
.env file. The device address is required; the API refuses to start
without it.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from analyzer.common.config import DeviceConfig, validate_device_config
from analyzer.common.exceptions import ConfigError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Create a .env file with:
    - POWER_ANALYZER_IP=192.168.1.50        (host or host:port)
    - POWER_ANALYZER_UNIT_ID=1
    - POWER_ANALYZER_TIMEOUT=3.0
    """
    power_analyzer_ip: str = ""
    power_analyzer_unit_id: int = 1
    power_analyzer_timeout: float = 3.0

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def device_config(self) -> DeviceConfig:
        """Validated connection settings for the poller."""
        if not self.power_analyzer_ip.strip():
            raise ConfigError("POWER_ANALYZER_IP is not set")
        return validate_device_config(DeviceConfig(
            address=self.power_analyzer_ip.strip(),
            unit_id=self.power_analyzer_unit_id,
            timeout_s=self.power_analyzer_timeout,
        ))


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
