"""Unit tests for the logging configuration module."""

import json
import logging

import pytest
import structlog

from template_deps.config import EngineConfig
from template_deps.log_config import (
    bind_context,
    clear_context,
    configure_from,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestLoggingConfiguration:
    """Test cases for logging configuration."""

    def teardown_method(self):
        """Restore structlog defaults after each test."""
        structlog.reset_defaults()

    def test_configure_logging_info_level(self):
        """Test logging configuration with INFO level."""
        configure_logging(level="INFO", json_logs=True)
        logger = get_logger("test")
        assert logger is not None
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_lowercase_level(self):
        """Test that level names are case-insensitive."""
        configure_logging(level="debug", json_logs=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_invalid_level(self):
        """Test logging configuration with invalid level."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="INVALID", json_logs=True)

    def test_configure_logging_console_renderer(self):
        """Test logging configuration with console renderer."""
        configure_logging(level="INFO", json_logs=False)
        assert get_logger("test") is not None

    def test_configure_from_engine_config(self):
        """Test configuring from an EngineConfig."""
        configure_from(EngineConfig(logging_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

    def test_json_output(self, capsys):
        """Test that events are rendered as JSON on stderr."""
        configure_logging(level="INFO", json_logs=True)
        get_logger("test").info("template_registered", template_id="login")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "template_registered"
        assert event["template_id"] == "login"
        assert event["level"] == "info"


class TestContextBinding:
    """Test cases for context binding functionality."""

    def setup_method(self):
        """Set up test environment before each test."""
        clear_context()

    def teardown_method(self):
        """Clean up after each test."""
        clear_context()
        structlog.reset_defaults()

    def test_bind_context(self, capsys):
        """Test that bound context appears in log entries."""
        configure_logging(level="INFO", json_logs=True)
        bind_context(manifest="templates.yaml")
        get_logger("test").info("manifest_loaded")

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert event["manifest"] == "templates.yaml"

    def test_unbind_context(self, capsys):
        """Test that unbound keys disappear."""
        configure_logging(level="INFO", json_logs=True)
        bind_context(manifest="templates.yaml", command="validate")
        unbind_context("manifest")
        get_logger("test").info("manifest_loaded")

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert "manifest" not in event
        assert event["command"] == "validate"
