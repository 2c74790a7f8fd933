"""Tests for structured logging configuration."""

import json
import logging

from platform_setup.utils.logging_config import configure_logging, get_logger


class TestConfigureLogging:
    """Test configure_logging."""

    def test_console_output(self, capsys):
        """Test events are rendered to stderr."""
        configure_logging("INFO")

        get_logger("test").info("service_configured", service="contactdb")

        captured = capsys.readouterr()
        assert "service_configured" in captured.err
        assert "service=contactdb" in captured.err
        assert captured.out == ""

    def test_json_output(self, capsys):
        """Test JSON lines output."""
        configure_logging("DEBUG", json_output=True)

        get_logger("test").debug("cache_opened", encrypted=False)

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert event["event"] == "cache_opened"
        assert event["encrypted"] is False
        assert event["level"] == "debug"

    def test_level_filtering(self, capsys):
        """Test events below the level are dropped."""
        configure_logging("WARNING")

        get_logger("test").info("hidden")

        assert "hidden" not in capsys.readouterr().err

    def test_stdlib_level(self):
        """Test the standard library root logger follows the level."""
        configure_logging("debug")

        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_defaults_to_info(self):
        """Test an unknown level name falls back to INFO."""
        configure_logging("VERBOSE")

        assert logging.getLogger().level == logging.INFO
