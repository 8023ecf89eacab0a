"""Tests for logging_config module."""

import logging
from unittest.mock import MagicMock

import pytest
from rich.logging import RichHandler

from agentdash.logging_config import (
    StructuredLogger,
    get_logger,
    get_structured_logger,
    setup_cli_logging,
    setup_logging,
)


@pytest.fixture
def package_logger():
    return logging.getLogger("agentdash")


class TestGetLogger:
    """Tests for get_logger function."""

    def test_namespaced_under_package(self):
        assert get_logger("detail_cache").name == "agentdash.detail_cache"

    def test_same_name_same_logger(self):
        assert get_logger("api") is get_logger("api")


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_sets_level_and_stops_propagation(self, package_logger):
        setup_logging(level=logging.DEBUG, console=False)
        assert package_logger.level == logging.DEBUG
        assert package_logger.propagate is False

    def test_accepts_level_names(self, package_logger):
        setup_logging(level="ERROR", console=False)
        assert package_logger.level == logging.ERROR

    def test_plain_console_handler(self, package_logger):
        setup_logging(console=True)
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0], logging.StreamHandler)
        assert not isinstance(package_logger.handlers[0], RichHandler)

    def test_rich_console_handler(self, package_logger):
        setup_logging(console=True, rich_console=True)
        assert isinstance(package_logger.handlers[0], RichHandler)

    def test_file_handler_creates_directory(self, tmp_path, package_logger):
        log_file = tmp_path / "nested" / "agentdash.log"
        setup_logging(level=logging.INFO, log_file=log_file, console=False)

        get_logger("test").info("written to file")
        for handler in package_logger.handlers:
            handler.flush()

        assert "written to file" in log_file.read_text()

    def test_clears_existing_handlers(self, package_logger):
        package_logger.addHandler(logging.NullHandler())
        setup_logging(console=False)
        assert package_logger.handlers == []


class TestSetupCliLogging:
    """Tests for setup_cli_logging function."""

    def test_quiet_by_default(self, package_logger):
        logger = setup_cli_logging()
        assert logger.name == "agentdash.cli"
        assert package_logger.level == logging.WARNING

    def test_verbose_uses_debug_and_rich(self, package_logger):
        setup_cli_logging(verbose=True)
        assert package_logger.level == logging.DEBUG
        assert isinstance(package_logger.handlers[0], RichHandler)


class TestStructuredLogger:
    """Tests for StructuredLogger class."""

    @pytest.fixture
    def mock_logger(self):
        return MagicMock(spec=logging.Logger)

    @pytest.mark.parametrize("level", ["debug", "info", "warning", "error", "exception"])
    def test_plain_message_passes_through(self, mock_logger, level):
        getattr(StructuredLogger(mock_logger), level)("Fetching detail")
        getattr(mock_logger, level).assert_called_once_with("Fetching detail")

    def test_inline_fields(self, mock_logger):
        StructuredLogger(mock_logger).debug("GET", url="http://x/api", status=404)
        mock_logger.debug.assert_called_once_with("GET [url=http://x/api status=404]")

    def test_context_is_inherited_not_shared(self, mock_logger):
        base = StructuredLogger(mock_logger)
        scoped = base.with_context(provider="claude").with_context(session="s1")

        scoped.info("ready")
        base.info("plain")

        assert mock_logger.info.call_args_list[0][0][0] == "ready [provider=claude session=s1]"
        assert mock_logger.info.call_args_list[1][0][0] == "plain"

    def test_inline_fields_override_context(self, mock_logger):
        StructuredLogger(mock_logger, {"mode": "full"}).info("x", mode="user_only")
        mock_logger.info.assert_called_once_with("x [mode=user_only]")

    def test_get_structured_logger(self):
        logger = get_structured_logger("api")
        assert isinstance(logger, StructuredLogger)
        assert logger._logger.name == "agentdash.api"
