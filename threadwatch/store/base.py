"""Conversation store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from threadwatch.bus.events import MessageRecord, ThreadContainer


class ConversationStore(ABC):
    """Read access to thread metadata and message history.

    Implementations raise on lookup/transport failures; the processor
    turns those into tagged results.
    """

    @abstractmethod
    async def fetch_container(self, thread_id: str) -> ThreadContainer:
        """Fetch a thread with its parent channel id and name."""
        ...

    @abstractmethod
    async def fetch_messages(self, container_id: str, limit: int = 100) -> list[MessageRecord]:
        """Fetch up to `limit` messages of a thread, newest first."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
