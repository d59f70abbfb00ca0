"""
Builds the email payload sent for a log record.

The payload is a minimal CRLF-terminated message: optional ``From`` and
``To`` headers, a ``Subject`` of the form ``<app> - <severity>``, and a
body holding the timestamp, the message, a stack trace of the caller and
the record's structured fields as tab-indented JSON.
"""

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from types import FrameType
from typing import Any, Optional

from .errors import RenderError
from .levels import severity_name

MAX_DEPTH = 100
TIMESTAMP_FORMAT = "%Y%m%d %H:%M:%S"
CRLF = "\r\n"

# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


@dataclass(frozen=True)
class StackFrame:
    """One resolved entry of a captured call stack."""

    index: int
    filename: str
    function: str
    lineno: int
    pc: int
    entry: int


def _resolve(index: int, frame: FrameType) -> Optional[StackFrame]:
    code = getattr(frame, "f_code", None)
    if code is None or not code.co_filename:
        return None
    return StackFrame(
        index=index,
        filename=code.co_filename,
        function=getattr(code, "co_qualname", code.co_name),
        lineno=frame.f_lineno or code.co_firstlineno,
        pc=max(frame.f_lasti, 0),
        entry=id(code),
    )


def capture_stack(skip: int = 0, limit: int = MAX_DEPTH) -> list[StackFrame]:
    """
    Capture the active call stack, innermost frame first.

    Args:
        skip: Number of frames above the caller of this function to skip.
        limit: Maximum number of frames to return.

    Returns:
        list[StackFrame]: At most `limit` frames. The walk stops at the
            first frame that cannot be resolved.
    """
    frames: list[StackFrame] = []
    frame: Optional[FrameType] = sys._getframe(1 + skip)
    while frame is not None and len(frames) < limit:
        resolved = _resolve(len(frames), frame)
        if resolved is None:
            break
        frames.append(resolved)
        frame = frame.f_back
    return frames


def format_stack(frames: list[StackFrame]) -> str:
    """Render captured frames as the trace section of the message body."""
    trace = ""
    for f in frames:
        trace += f"Frame {f.index:02d}:{CRLF}"
        trace += f"\tFile: {f.filename}{CRLF}"
        trace += f"\tFunction: {f.function}{CRLF}"
        trace += f"\tLine: {f.lineno}{CRLF}"
        trace += f"\tPC/Entry: 0x{f.pc:08x}/0x{f.entry:08x}{CRLF}"
    return trace


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the structured fields attached to `record` via `extra=`."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


def render_fields(fields: dict[str, Any]) -> str:
    """
    Encode structured fields as tab-indented JSON with sorted keys.

    Raises:
        RenderError: If a value cannot be encoded.
    """
    try:
        return json.dumps(fields, indent="\t", sort_keys=True, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise RenderError(f"Could not encode fields: {e}") from e


def format_timestamp(created: float) -> str:
    """Format a record creation time (seconds since the epoch) in UTC."""
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def build_message(
    record: logging.LogRecord,
    app_name: str,
    from_address: str = "",
    to_address: str = "",
    *,
    max_depth: int = MAX_DEPTH,
) -> bytes:
    """
    Build the email payload for a log record.

    The stack trace starts at the caller of this function, so it must be
    called on the thread that logged the record.

    Args:
        record: The log record to describe.
        app_name: Application name used in the subject.
        from_address: Sender address; no ``From`` header when empty.
        to_address: Recipient address; no ``To`` header when empty.
        max_depth: Maximum number of stack frames in the trace.

    Returns:
        bytes: The UTF-8 encoded message.
    """
    trace = format_stack(capture_stack(skip=1, limit=max_depth))

    try:
        fields = render_fields(record_fields(record))
    except RenderError:
        fields = ""

    subject = f"{app_name} - {severity_name(record.levelno)}"
    body = f"{format_timestamp(record.created)} - {record.getMessage()}{CRLF}{CRLF}"
    body += f"{trace}{CRLF}{CRLF}Data:{CRLF}{CRLF}{fields}"

    contents = ""
    if from_address:
        contents += f"From: {from_address}{CRLF}"
    if to_address:
        contents += f"To: {to_address}{CRLF}"
    contents += f"Subject: {subject}{CRLF}{CRLF}{body}{CRLF}{CRLF}"
    return contents.encode("utf-8")
