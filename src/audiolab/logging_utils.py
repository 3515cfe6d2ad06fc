"""Logging setup for the audiolab API."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from audiolab.config import LoggingSettings, load_settings

_FORMATTER = logging.Formatter(
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)

# Client libraries that log every request (URLs include the Workers AI account id).
_CHATTY_LOGGERS = ("httpx", "httpcore", "botocore", "boto3", "urllib3")

_logger = logging.getLogger(__name__)


def _build_handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))
        except OSError as exc:
            _logger.warning("Failed to open log file %s: %s", log_file, exc)
    for handler in handlers:
        handler.setFormatter(_FORMATTER)
    return handlers


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Route the root logger to stderr and, when configured, a log file."""
    if settings is None:
        settings = load_settings().logging
    level = getattr(logging, settings.level.upper(), logging.INFO)

    logging.basicConfig(level=level, handlers=_build_handlers(settings.file), force=True)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
