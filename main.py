# main.py
import logging
from typing import Optional

from mailhook.config import settings
from mailhook.errors import MailHookError
from mailhook.hooks import create_hook
from mailhook.levels import panic

# Import core tools
from mailhook.logging import setup_logging

# Build the mail hook when MAIL_HOOK__ENABLED=true. A hook that fails
# to construct is not registered.
mail_hook: Optional[logging.Handler] = None
hook_error: Optional[MailHookError] = None
if settings.MAIL_HOOK.ENABLED:
    try:
        mail_hook = create_hook(settings.MAIL_HOOK)
    except MailHookError as e:
        hook_error = e

# Read the config, set the log level and attach the hook
setup_logging(script_name="main_test_run", mail_hook=mail_hook)

logger = logging.getLogger(__name__)
if hook_error is not None:
    logger.warning(f"Mail hook disabled: {hook_error}")


def load_data(file_path: str) -> str:
    """A dummy function to simulate loading data."""
    logger.info(f"Loading data from: {file_path}")
    if file_path == "data.csv":
        return "some,csv,data"
    else:
        raise FileNotFoundError("File not found.")


def main() -> None:
    """Main execution logic."""
    logger.info(f"Starting main process in {settings.ENVIRONMENT} mode.")
    logger.warning("This is a WARNING message. It is never emailed.")

    try:
        load_data("other_file.csv")
    except FileNotFoundError as e:
        # Structured fields go through `extra` and end up in the Data section
        logger.error(
            f"A managed error occurred: {e}",
            extra={"file_path": "other_file.csv", "attempt": 1},
        )

    logger.info("Main process finished.")


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        panic(logger, f"Unhandled exception in main: {e}", exc_info=True)
    finally:
        logging.shutdown()
