"""
Severity levels understood by the mail hooks.

The standard library has no PANIC level and reports FATAL as CRITICAL,
so both are named here to match the subjects the hooks produce.
"""

import logging
from typing import Any

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
FATAL = logging.CRITICAL
PANIC = 60

logging.addLevelName(PANIC, "PANIC")

_SEVERITY_NAMES = {
    PANIC: "panic",
    FATAL: "fatal",
    ERROR: "error",
    WARNING: "warning",
    INFO: "info",
    DEBUG: "debug",
}

# Levels both hooks report as applicable
ALERT_LEVELS = frozenset({PANIC, FATAL, ERROR})


def severity_name(levelno: int) -> str:
    """Return the lowercase display name for a level number."""
    name = _SEVERITY_NAMES.get(levelno)
    if name is None:
        name = logging.getLevelName(levelno).lower()
    return name


def panic(logger: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    """Log `msg` on `logger` at PANIC level."""
    logger.log(PANIC, msg, *args, **kwargs)
