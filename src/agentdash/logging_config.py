"""
Logging configuration for Agentdash.

All loggers live under the "agentdash" namespace so a single call to
setup_logging() controls the whole package.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

ROOT_LOGGER_NAME = "agentdash"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under agentdash (e.g. "agentdash.cache")."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    rich_console: bool = False,
) -> None:
    """Configure the agentdash logger.

    Args:
        level: Log level for the package logger
        log_file: Optional file to append log records to
        console: Whether to log to stderr
        rich_console: Use Rich's handler for console output
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    if console:
        if rich_console:
            from rich.logging import RichHandler
            handler: logging.Handler = RichHandler(show_path=False, markup=False)
            handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)


def setup_cli_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure logging for CLI commands.

    Quiet by default (warnings only); --verbose switches to DEBUG with the
    Rich console handler.
    """
    setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        log_file=log_file,
        console=True,
        rich_console=verbose,
    )
    return get_logger("cli")


class StructuredLogger:
    """Logger wrapper that appends key=value context to every message."""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._context: Dict[str, Any] = dict(context or {})

    def with_context(self, **kwargs: Any) -> "StructuredLogger":
        return StructuredLogger(self._logger, {**self._context, **kwargs})

    def _format(self, message: str, kwargs: Dict[str, Any]) -> str:
        fields = {**self._context, **kwargs}
        if not fields:
            return message
        suffix = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{message} [{suffix}]"

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._format(message, kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._format(message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._format(message, kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(self._format(message, kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        self._logger.exception(self._format(message, kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))
