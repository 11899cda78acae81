"""Event types for the thread watch pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Attachment:
    """A file attached to a message."""

    url: str
    content_type: str | None = None
    filename: str = ""


@dataclass
class MessageRecord:
    """A historical message fetched from the conversation store."""

    id: str
    author_tag: str              # "name" or legacy "name#1234"
    content: str
    created_at: datetime
    attachments: list[Attachment] = field(default_factory=list)
    author_is_bot: bool = False


@dataclass
class ThreadContainer:
    """A thread as seen by the conversation store."""

    id: str
    parent_id: str | None
    parent_name: str = ""


@dataclass
class ThreadCreated:
    """Notification that a new thread was opened."""

    thread_id: str
    parent_channel_id: str | None


@dataclass
class MessageCreated:
    """Notification that a message was posted somewhere."""

    thread_id: str                   # Channel the message landed in
    message_id: str
    author_tag: str
    content: str = ""
    author_is_bot: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    attachments: list[Attachment] = field(default_factory=list)
