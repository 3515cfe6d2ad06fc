from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from audiolab import logging_utils
from audiolab.config import LoggingSettings


def _settings(log_file: str | None, level: str = "INFO") -> SimpleNamespace:
    return SimpleNamespace(
        logging=LoggingSettings(level=level, file=log_file),
    )


@patch("audiolab.logging_utils.load_settings")
@patch("audiolab.logging_utils.logging.basicConfig")
def test_configure_logging_stream_only(
    mock_basic_config: MagicMock,
    mock_load_settings: MagicMock,
) -> None:
    mock_load_settings.return_value = _settings(None, level="debug")

    logging_utils.configure_logging()

    kwargs = mock_basic_config.call_args.kwargs
    assert kwargs["force"] is True
    assert kwargs["level"] == logging.DEBUG
    assert len(kwargs["handlers"]) == 1


@patch("audiolab.logging_utils.load_settings")
@patch("audiolab.logging_utils.logging.basicConfig")
def test_configure_logging_with_file(
    mock_basic_config: MagicMock,
    mock_load_settings: MagicMock,
    tmp_path,
) -> None:
    mock_load_settings.return_value = _settings(str(tmp_path / "logs" / "app.log"))

    logging_utils.configure_logging()

    handlers = mock_basic_config.call_args.kwargs["handlers"]
    assert len(handlers) == 2
    assert isinstance(handlers[1], logging.FileHandler)
    assert (tmp_path / "logs").is_dir()
    handlers[1].close()


@patch("audiolab.logging_utils.load_settings")
@patch("audiolab.logging_utils.logging.FileHandler", side_effect=OSError("permission denied"))
@patch("audiolab.logging_utils._logger")
def test_configure_logging_file_handler_error(
    mock_logger: MagicMock,
    _mock_file_handler: MagicMock,
    mock_load_settings: MagicMock,
    tmp_path,
) -> None:
    mock_load_settings.return_value = _settings(str(tmp_path / "app.log"))

    with patch("audiolab.logging_utils.logging.basicConfig") as mock_basic_config:
        logging_utils.configure_logging()

    mock_logger.warning.assert_called_once()
    assert len(mock_basic_config.call_args.kwargs["handlers"]) == 1


@patch("audiolab.logging_utils.load_settings")
@patch("audiolab.logging_utils.logging.basicConfig")
def test_configure_logging_uses_given_settings(
    mock_basic_config: MagicMock,
    mock_load_settings: MagicMock,
) -> None:
    logging_utils.configure_logging(LoggingSettings(level="ERROR"))

    mock_load_settings.assert_not_called()
    assert mock_basic_config.call_args.kwargs["level"] == logging.ERROR


@patch("audiolab.logging_utils.logging.basicConfig")
def test_configure_logging_quiets_client_libraries(
    _mock_basic_config: MagicMock,
    monkeypatch,
) -> None:
    for name in ("httpx", "botocore"):
        logger = logging.getLogger(name)
        monkeypatch.setattr(logger, "level", logger.level)

    logging_utils.configure_logging(LoggingSettings(level="DEBUG"))

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("botocore").level == logging.WARNING
