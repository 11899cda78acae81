"""Event types delivered by channels."""

from threadwatch.bus.events import (
    Attachment,
    MessageCreated,
    MessageRecord,
    ThreadContainer,
    ThreadCreated,
)

__all__ = [
    "Attachment",
    "MessageCreated",
    "MessageRecord",
    "ThreadContainer",
    "ThreadCreated",
]
