"""
Logging handlers that email records at ERROR, FATAL and PANIC level.

Two variants are provided:

-   `MailHook` opens one SMTP session when it is created, declares the
    sender and recipient on it, and writes every message onto that same
    session. `fire` blocks for the whole write and raises on failure.
-   `MailAuthHook` keeps only connection parameters and credentials. Each
    `fire` builds the message on the calling thread, then delivers it on
    a fresh authenticated session in a detached unit of work. Delivery
    failures are discarded so alerting never blocks or re-enters logging.
"""

import logging
import smtplib
import socket
import threading
from concurrent.futures import Executor
from types import TracebackType
from typing import TYPE_CHECKING, Optional

from typing_extensions import Self

from .addresses import Address, parse_address
from .errors import HookConnectionError, HookTimeoutError, ProtocolError
from .levels import ALERT_LEVELS
from .message import MAX_DEPTH, build_message

if TYPE_CHECKING:
    from .config import MailHookSettings

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 3.0


class _AlertHandler(logging.Handler):
    """Shared handler plumbing: level gating and error routing."""

    def __init__(self, app_name: str):
        super().__init__(level=logging.ERROR)
        self.app_name = app_name
        self.max_depth = MAX_DEPTH
        self.addFilter(lambda record: record.levelno in self.levels())

    def levels(self) -> frozenset[int]:
        """Return the levels this hook must be fired for."""
        return ALERT_LEVELS

    def fire(self, record: logging.LogRecord) -> None:
        raise NotImplementedError

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.fire(record)
        except Exception:
            self.handleError(record)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        exc_traceback: Optional[TracebackType],
    ) -> None:
        self.close()


class MailHook(_AlertHandler):
    """
    Sends records over a single SMTP session opened at construction.

    The session is owned by the hook until `close`. It has no locking of
    its own: when `fire` is called directly, callers must not call it from
    several threads at once. Records routed through `logging` are already
    serialised by the handler lock.
    """

    def __init__(
        self,
        app_name: str,
        host: str,
        port: int,
        from_address: str,
        to_address: str,
    ):
        super().__init__(app_name)

        # Connect to the remote SMTP server
        try:
            smtp = smtplib.SMTP(host, port)
        except (OSError, smtplib.SMTPException) as e:
            raise HookConnectionError(f"Could not connect to {host}:{port}: {e}") from e

        try:
            self.sender: Address = parse_address(from_address)
            self.recipient: Address = parse_address(to_address)
            self._declare_envelope(smtp)
        except Exception:
            _quietly_close(smtp)
            raise

        self._smtp = smtp
        self._envelope_open = True
        logger.info(
            f"Mail hook '{app_name}' connected to {host}:{port} "
            f"({self.sender.address} -> {self.recipient.address})"
        )

    def _declare_envelope(self, smtp: smtplib.SMTP) -> None:
        code, reply = smtp.mail(self.sender.address)
        if code != 250:
            raise ProtocolError("Sender rejected", code, reply)
        code, reply = smtp.rcpt(self.recipient.address)
        if code not in (250, 251):
            raise ProtocolError("Recipient rejected", code, reply)

    def fire(self, record: logging.LogRecord) -> None:
        """
        Write one message for `record` onto the open session.

        Raises:
            ProtocolError: If the server refuses the envelope or the data.
            OSError: If the write itself fails.
        """
        if self._smtp is None:
            raise ProtocolError("Session closed")

        if not self._envelope_open:
            # The previous DATA ended the transaction; pin the same envelope again
            self._declare_envelope(self._smtp)
            self._envelope_open = True

        message = build_message(
            record,
            self.app_name,
            self.sender.address,
            self.recipient.address,
            max_depth=self.max_depth,
        )

        try:
            code, reply = self._smtp.data(message)
        except smtplib.SMTPDataError as e:
            raise ProtocolError("Data refused", e.smtp_code, e.smtp_error) from e
        finally:
            self._envelope_open = False
        if code != 250:
            raise ProtocolError("Message rejected", code, reply)

    def close(self) -> None:
        """Quit the SMTP session and release the handler."""
        smtp = getattr(self, "_smtp", None)
        if smtp is not None:
            self._smtp = None
            _quietly_close(smtp)
        super().close()


class MailAuthHook(_AlertHandler):
    """
    Sends each record on its own authenticated SMTP session.

    Holds no connection between calls, so concurrent `fire` calls are
    independent. `fire` never reports delivery failures.
    """

    def __init__(
        self,
        app_name: str,
        host: str,
        port: int,
        from_address: str,
        to_address: str,
        username: str,
        password: str,
        *,
        probe_timeout: float = PROBE_TIMEOUT,
        executor: Optional[Executor] = None,
    ):
        super().__init__(app_name)

        # Check that the server listens on that port
        try:
            with socket.create_connection((host, port), timeout=probe_timeout):
                pass
        except socket.timeout as e:
            raise HookTimeoutError(
                f"No answer from {host}:{port} within {probe_timeout}s"
            ) from e
        except OSError as e:
            raise HookConnectionError(f"Could not connect to {host}:{port}: {e}") from e

        self.sender: Address = parse_address(from_address)
        self.recipient: Address = parse_address(to_address)
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self._executor = executor
        logger.info(f"Mail auth hook '{app_name}' configured for {host}:{port}")

    def fire(self, record: logging.LogRecord) -> None:
        """Build the message now and hand its delivery to a detached worker."""
        # The trace must show the logging call site, so build before dispatch
        message = build_message(
            record,
            self.app_name,
            self.sender.address,
            self.recipient.address,
            max_depth=self.max_depth,
        )

        # A shut-down executor or thread exhaustion drops the alert like a failed send
        try:
            if self._executor is not None:
                self._executor.submit(self._deliver, message)
            else:
                threading.Thread(
                    target=self._deliver,
                    args=(message,),
                    name=f"mailhook-{self.app_name}",
                    daemon=True,
                ).start()
        except RuntimeError:
            return

    def _deliver(self, message: bytes) -> None:
        # Connect, authenticate, set sender and recipient and send in one go
        try:
            with smtplib.SMTP(self.host, self.port) as smtp:
                smtp.ehlo()
                smtp.user, smtp.password = self.username, self._password
                smtp.auth("PLAIN", smtp.auth_plain)
                smtp.sendmail(
                    self.sender.address, [self.recipient.address], message
                )
        except (OSError, smtplib.SMTPException):
            return


def _quietly_close(smtp: smtplib.SMTP) -> None:
    try:
        smtp.quit()
    except (OSError, smtplib.SMTPException):
        smtp.close()


def create_hook(
    cfg: "MailHookSettings", executor: Optional[Executor] = None
) -> _AlertHandler:
    """
    Build the hook described by the MAIL_HOOK settings.

    An authenticated hook is returned when a username is configured,
    otherwise a hook bound to a single unauthenticated session.
    """
    hook: _AlertHandler
    if cfg.USERNAME:
        hook = MailAuthHook(
            cfg.APP_NAME,
            cfg.SMTP_HOST,
            cfg.SMTP_PORT,
            cfg.FROM_ADDRESS,
            cfg.TO_ADDRESS,
            cfg.USERNAME,
            cfg.PASSWORD or "",
            probe_timeout=cfg.PROBE_TIMEOUT,
            executor=executor,
        )
    else:
        hook = MailHook(
            cfg.APP_NAME,
            cfg.SMTP_HOST,
            cfg.SMTP_PORT,
            cfg.FROM_ADDRESS,
            cfg.TO_ADDRESS,
        )
    hook.max_depth = cfg.MAX_DEPTH
    return hook
