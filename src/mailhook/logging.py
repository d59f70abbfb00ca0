"""
This module provides a centralized function for setting up
logging for an application that alerts by email.

It features:
-   Configures the root logger.
-   Adds a colorful, formatted handler (`colorlog`) for console output (STDOUT).
-   Optionally adds a timestamped file handler for persistent logs.
-   Attaches a mail hook so ERROR, FATAL and PANIC records are emailed.
-   Sets log level based on the 'ENVIRONMENT' setting (from config.py).
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from colorlog import ColoredFormatter  # For colorful console output

from .config import settings
from .levels import PANIC


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance from the shared hierarchy.

    Args:
        name (str): The name for the logger (usually `__name__` of the
            calling module).

    Returns:
        logging.Logger: A logger instance.
    """
    return logging.getLogger(name)


def setup_logging(
    script_name: str = "app",
    log_dir: Optional[Union[str, Path]] = None,
    log_level_override: Optional[str] = None,
    mail_hook: Optional[logging.Handler] = None,
) -> Optional[logging.Handler]:
    """
    Set up the root logging configuration for the application.

    This function should be called once at the start of the main script.

    Args:
        script_name (str, optional): Base name for the log file.
            Defaults to "app".
        log_dir (Union[str, Path], optional): Directory for a timestamped
            log file. No file handler is added when omitted.
        log_level_override (Optional[str], optional): If provided,
            overrides the log level (e.g., "DEBUG", "INFO").
        mail_hook (Optional[logging.Handler], optional): A hook built by
            `create_hook` (or by hand) to attach to the root logger.

    Returns:
        Optional[logging.Handler]: The mail hook attached, if any.
    """

    # Determine Log Level
    if log_level_override:
        level = getattr(logging, log_level_override.upper(), logging.INFO)
    elif settings.ENVIRONMENT.lower() == "development":
        level = logging.DEBUG
    else:
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers (e.g., from previous runs in a notebook)
    root_logger.handlers.clear()

    # CONSOLE HANDLER (with color)
    console_formatter = ColoredFormatter(
        "%(log_color)s%(levelname)-8s%(reset)s | %(log_color)s%(message)s%(reset)s",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
            logging.getLevelName(PANIC): "bold_white,bg_red",
        },
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # FILE HANDLER (without color)
    if log_dir is not None:
        log_path_obj = Path(log_dir)
        try:
            log_path_obj.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            root_logger.warning(
                f"Could not create log directory {log_dir}. {e}. Using '.'"
            )
            log_path_obj = Path(".")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = log_path_obj / f"{script_name}_{timestamp}.log"
        try:
            file_handler = logging.FileHandler(
                log_file_path, mode="w", encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            root_logger.addHandler(file_handler)
            root_logger.info(f"Log file: {log_file_path}")
        except OSError as e:
            root_logger.warning(f"Could not create file handler {log_file_path}. {e}")

    # MAIL HOOK
    if mail_hook is not None:
        root_logger.addHandler(mail_hook)

    root_logger.info(
        f"Logging initialized. Console level: {logging.getLevelName(level)}"
    )
    root_logger.info(f"Environment: {settings.ENVIRONMENT}")
    if mail_hook is not None:
        root_logger.info(f"Mail hook attached: {type(mail_hook).__name__}")

    return mail_hook
