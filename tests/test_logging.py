import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from mailhook import logging as logging_module
from mailhook.levels import ERROR


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Reset logging configuration before each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level

    yield

    root.handlers = original_handlers
    root.setLevel(original_level)


def test_logging_level_production(reload_settings: Any) -> None:
    """
    Tests that the default log level is INFO
    when ENVIRONMENT is not 'development'.
    """
    reload_settings({"ENVIRONMENT": "Production"})

    logging_module.setup_logging()

    assert logging.getLogger().level == logging.INFO


def test_logging_level_development(reload_settings: Any) -> None:
    """
    Tests that the log level is DEBUG
    when ENVIRONMENT is 'development'.
    """
    reload_settings({"ENVIRONMENT": "development"})

    logging_module.setup_logging()

    assert logging.getLogger().level == logging.DEBUG


def test_logging_level_override() -> None:
    """
    Tests that passing a log level string overrides the environment.
    """
    logging_module.setup_logging(log_level_override="WARNING")

    assert logging.getLogger().level == logging.WARNING


def test_file_handler_written_to_log_dir(tmp_path: Path) -> None:
    logging_module.setup_logging(script_name="unit", log_dir=tmp_path)

    file_handlers = [
        h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
    ]
    assert len(file_handlers) == 1
    assert Path(file_handlers[0].baseFilename).parent == tmp_path
    assert Path(file_handlers[0].baseFilename).name.startswith("unit_")
    file_handlers[0].close()


def test_mail_hook_attached_to_root() -> None:
    hook = logging.Handler(level=ERROR)
    hook.emit = MagicMock()  # type: ignore[method-assign]

    returned = logging_module.setup_logging(mail_hook=hook)

    assert returned is hook
    assert hook in logging.getLogger().handlers
    logging.getLogger("tests.logging").error("disk full")
    hook.emit.assert_called_once()


def test_no_mail_hook_by_default() -> None:
    assert logging_module.setup_logging() is None


def test_get_logger_returns_named_logger() -> None:
    assert logging_module.get_logger("svc.worker") is logging.getLogger("svc.worker")
