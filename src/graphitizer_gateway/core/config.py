"""Application configuration using pydantic-settings."""

import logging
import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

from graphitizer_gateway.protocol.constants import (
    CONFIRM_TIMEOUT,
    LEVEL_POLL_DELAY,
    READ_TIMEOUT,
    SAMPLE_RETRY_DELAY,
    SETTLE_DELAY,
    TELEMETRY_INTERVAL,
    TOGGLE_POLL_DELAY,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with GRAPHITIZER_ (e.g., GRAPHITIZER_SERIAL_PORT).
    """

    serial_port: str = "/dev/ttyACM0"
    serial_baud: int = 115200
    read_timeout: float = READ_TIMEOUT
    api_host: str = "0.0.0.0"
    api_port: int = 9999
    log_level: str = "INFO"
    telemetry_interval: float = TELEMETRY_INTERVAL

    settle_delay: float = SETTLE_DELAY
    level_poll_delay: float = LEVEL_POLL_DELAY
    toggle_poll_delay: float = TOGGLE_POLL_DELAY
    sample_retry_delay: float = SAMPLE_RETRY_DELAY
    # 0 or less disables the limit
    confirm_timeout: float = CONFIRM_TIMEOUT
    confirm_max_polls: int = 0

    influx_host: str = "localhost"
    influx_port: int = 8086
    influx_username: str = "root"
    influx_password: str = "root"
    influx_database: str = "data"
    influx_measurement: str = "outputs"
    influx_retention_policy: str = "autogen"

    model_config = SettingsConfigDict(env_prefix="GRAPHITIZER_")

    @property
    def confirm_timeout_or_none(self) -> float | None:
        """Confirmation timeout, or None when unbounded."""
        return self.confirm_timeout if self.confirm_timeout > 0 else None

    @property
    def confirm_max_polls_or_none(self) -> int | None:
        """Confirmation poll limit, or None when unbounded."""
        return self.confirm_max_polls if self.confirm_max_polls > 0 else None


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
