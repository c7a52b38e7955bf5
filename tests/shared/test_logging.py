import logging
import logging.handlers

import structlog
from shared.config import Settings
from shared.logging import add_context, clear_context, configure_logging, get_log_level


class TestLogLevel:
    def test_level_follows_environment(self):
        assert get_log_level(Settings(_env_file=None, environment="production")) == "INFO"
        assert get_log_level(Settings(_env_file=None, environment="development")) == "DEBUG"
        assert get_log_level(Settings(_env_file=None, environment="test")) == "WARNING"

    def test_unknown_environment_defaults_to_info(self):
        assert get_log_level(Settings(_env_file=None, environment="qa")) == "INFO"

    def test_explicit_level_wins(self):
        assert get_log_level(Settings(_env_file=None, environment="production", log_level="ERROR")) == "ERROR"


class TestConfigureLogging:
    def test_file_handler_when_log_dir_set(self, tmp_path):
        log_dir = tmp_path / "logs"
        configure_logging(Settings(_env_file=None, environment="test", log_dir=log_dir))

        handlers = logging.getLogger().handlers
        assert log_dir.is_dir()
        assert any(isinstance(handler, logging.handlers.RotatingFileHandler) for handler in handlers)

    def test_console_only_without_log_dir(self):
        configure_logging(Settings(_env_file=None, environment="test"))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert logging.getLogger().level == logging.WARNING


class TestContext:
    def test_bind_and_clear(self):
        clear_context()
        add_context(request_id="abc")
        assert structlog.contextvars.get_contextvars() == {"request_id": "abc"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
