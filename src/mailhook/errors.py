"""Exceptions raised by the mail hooks."""

from typing import Optional


class MailHookError(Exception):
    """Base class for every mail hook error."""


class HookConnectionError(MailHookError, ConnectionError):
    """The SMTP host could not be reached."""


class HookTimeoutError(HookConnectionError, TimeoutError):
    """The reachability probe did not complete in time."""


class AddressFormatError(MailHookError, ValueError):
    """A sender or recipient address is malformed."""


class ProtocolError(MailHookError):
    """The SMTP server rejected a handshake step or a data write."""

    def __init__(self, message: str, code: Optional[int] = None, reply: bytes = b""):
        super().__init__(message)
        self.code = code
        self.reply = reply

    def __str__(self) -> str:
        text = super().__str__()
        if self.code is None:
            return text
        return f"{text} ({self.code} {self.reply.decode('utf-8', 'replace')})"


class RenderError(MailHookError):
    """Structured fields could not be encoded as JSON."""
