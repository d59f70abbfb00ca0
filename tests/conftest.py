import importlib
import logging
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from pytest import MonkeyPatch

from mailhook import config as config_module
from mailhook import hooks
from mailhook import logging as logging_module


def _reload_all() -> None:
    config_module.get_settings.cache_clear()
    importlib.reload(config_module)
    importlib.reload(hooks)
    importlib.reload(logging_module)


@pytest.fixture
def reload_settings(monkeypatch: MonkeyPatch) -> Any:
    """
    Fixture to force a reload of the config module and
    all dependent modules *after* setting new env vars.
    """

    def _set_env_and_reload(vars_dict: dict[str, str]) -> None:
        for k, v in vars_dict.items():
            if v == "":
                monkeypatch.delenv(k, raising=False)
            else:
                monkeypatch.setenv(k, v)
        _reload_all()

    yield _set_env_and_reload

    # --- Teardown (after test) ---
    # Restore the environment before reloading, not after
    monkeypatch.undo()
    try:
        _reload_all()
    except ValidationError:
        pass  # We don't care about validation errors on cleanup


class ImmediateExecutor(Executor):
    """Runs submitted work on the calling thread."""

    def __init__(self) -> None:
        self.submitted: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        self.submitted.append((fn, args))
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class RecordingExecutor(Executor):
    """Accepts work without ever running it."""

    def __init__(self) -> None:
        self.submitted: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        self.submitted.append((fn, args))
        return Future()


@pytest.fixture
def mock_smtp(monkeypatch: MonkeyPatch) -> tuple[MagicMock, MagicMock]:
    """
    Replace smtplib.SMTP with a mock whose session accepts everything.

    Returns the (class, instance) pair.
    """
    mock_smtp_instance = MagicMock()
    # Support "with smtplib.SMTP(...) as smtp:"
    mock_smtp_instance.__enter__.return_value = mock_smtp_instance
    mock_smtp_instance.mail.return_value = (250, b"2.1.0 Ok")
    mock_smtp_instance.rcpt.return_value = (250, b"2.1.5 Ok")
    mock_smtp_instance.data.return_value = (250, b"2.0.0 Ok: queued")
    mock_smtp_class = MagicMock(return_value=mock_smtp_instance)
    monkeypatch.setattr("smtplib.SMTP", mock_smtp_class)
    return mock_smtp_class, mock_smtp_instance


@pytest.fixture
def mock_probe(monkeypatch: MonkeyPatch) -> MagicMock:
    """Replace the reachability probe so no socket is opened."""
    mock_create_connection = MagicMock()
    monkeypatch.setattr("socket.create_connection", mock_create_connection)
    return mock_create_connection


def make_record(
    msg: str = "disk full",
    level: int = logging.ERROR,
    created: Optional[float] = None,
    **fields: Any,
) -> logging.LogRecord:
    """Build a LogRecord the way Logger.makeRecord does, with `extra` fields."""
    record = logging.getLogger("tests").makeRecord(
        "tests", level, __file__, 1, msg, (), None, extra=fields or None
    )
    if created is not None:
        record.created = created
    return record
