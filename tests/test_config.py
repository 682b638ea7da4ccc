"""Unit tests for configuration module."""

import os
from unittest.mock import patch

from graphitizer_gateway.core.config import Settings, setup_logging


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test settings have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.serial_port == "/dev/ttyACM0"
        assert settings.serial_baud == 115200
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 9999
        assert settings.log_level == "INFO"
        assert settings.telemetry_interval == 1.0
        assert settings.settle_delay == 0.05
        assert settings.level_poll_delay == 0.05
        assert settings.toggle_poll_delay == 0.08
        assert settings.influx_database == "data"
        assert settings.influx_measurement == "outputs"
        assert settings.influx_retention_policy == "autogen"

    def test_env_override_serial_port(self):
        """Test serial port override from environment."""
        with patch.dict(os.environ, {"GRAPHITIZER_SERIAL_PORT": "/dev/ttyUSB1"}):
            settings = Settings()

        assert settings.serial_port == "/dev/ttyUSB1"

    def test_env_override_api_port(self):
        """Test API port override from environment."""
        with patch.dict(os.environ, {"GRAPHITIZER_API_PORT": "9000"}):
            settings = Settings()

        assert settings.api_port == 9000

    def test_env_override_influx(self):
        """Test database settings override from environment."""
        env = {
            "GRAPHITIZER_INFLUX_HOST": "influx.local",
            "GRAPHITIZER_INFLUX_PORT": "18086",
            "GRAPHITIZER_INFLUX_DATABASE": "plant",
        }
        with patch.dict(os.environ, env):
            settings = Settings()

        assert settings.influx_host == "influx.local"
        assert settings.influx_port == 18086
        assert settings.influx_database == "plant"

    def test_env_override_delays(self):
        """Test confirmation timing override from environment."""
        with patch.dict(os.environ, {"GRAPHITIZER_TOGGLE_POLL_DELAY": "0.2", "GRAPHITIZER_SETTLE_DELAY": "0"}):
            settings = Settings()

        assert settings.toggle_poll_delay == 0.2
        assert settings.settle_delay == 0.0

    def test_confirmation_budget(self):
        """Test the default budget is a timeout with no poll limit."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.confirm_timeout_or_none == 30.0
        assert settings.confirm_max_polls_or_none is None

    def test_unbounded_confirmation(self):
        """Test zero disables both limits."""
        with patch.dict(os.environ, {"GRAPHITIZER_CONFIRM_TIMEOUT": "0", "GRAPHITIZER_CONFIRM_MAX_POLLS": "0"}):
            settings = Settings()

        assert settings.confirm_timeout_or_none is None
        assert settings.confirm_max_polls_or_none is None

    def test_poll_limit(self):
        """Test a positive poll limit is kept."""
        with patch.dict(os.environ, {"GRAPHITIZER_CONFIRM_MAX_POLLS": "40"}):
            settings = Settings()

        assert settings.confirm_max_polls_or_none == 40

    def test_env_prefix(self):
        """Test that non-prefixed env vars are ignored."""
        with patch.dict(os.environ, {"SERIAL_PORT": "/dev/other"}, clear=True):
            settings = Settings()

        assert settings.serial_port == "/dev/ttyACM0"


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_info(self):
        """Test setting up INFO logging."""
        setup_logging("INFO")

    def test_setup_logging_case_insensitive(self):
        """Test log level is case insensitive."""
        setup_logging("debug")

    def test_setup_logging_invalid_defaults_to_info(self):
        """Test invalid level defaults to INFO."""
        setup_logging("INVALID")
