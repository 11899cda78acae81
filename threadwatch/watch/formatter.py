"""Flatten a thread's messages into a plain-text transcript for the LLM."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from threadwatch.bus.events import Attachment, MessageRecord


def _format_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2026-01-01T12:00:00.000Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _format_attachment(attachment: Attachment) -> str:
    return f"{attachment.content_type or 'unknown'}; {attachment.url}"


def format_thread_messages(messages: Iterable[MessageRecord]) -> str:
    """One line per message, in the order given.

    Line shape: ``<timestamp>; <id>; <author>; <content> `` followed by
    ``Attachment/s: <type>; <url>...`` when the message has attachments.
    """
    lines: list[str] = []
    for msg in messages:
        line = f"{_format_timestamp(msg.created_at)}; {msg.id}; {msg.author_tag}; {msg.content} "
        if msg.attachments:
            line += "Attachment/s: " + "".join(_format_attachment(a) for a in msg.attachments)
        lines.append(line + "\n")
    return "".join(lines)
