"""In-memory conversation store, fed from channel events.

Used with MockChannel for local runs without Discord.
"""

from __future__ import annotations

from threadwatch.bus.events import MessageCreated, MessageRecord, ThreadContainer, ThreadCreated
from threadwatch.errors import StoreError
from threadwatch.store.base import ConversationStore


class InMemoryConversationStore(ConversationStore):
    """Keeps threads and their messages in dicts."""

    def __init__(self, channel_names: dict[str, str] | None = None) -> None:
        self._channel_names = dict(channel_names or {})
        self._threads: dict[str, ThreadContainer] = {}
        self._messages: dict[str, list[MessageRecord]] = {}

    def add_thread(self, thread_id: str, parent_id: str | None) -> None:
        self._threads[thread_id] = ThreadContainer(
            id=thread_id,
            parent_id=parent_id,
            parent_name=self._channel_names.get(parent_id or "", parent_id or ""),
        )
        self._messages.setdefault(thread_id, [])

    def add_message(self, thread_id: str, message: MessageRecord) -> None:
        self._messages.setdefault(thread_id, []).append(message)

    async def record_thread(self, event: ThreadCreated) -> None:
        self.add_thread(event.thread_id, event.parent_channel_id)

    async def record_message(self, event: MessageCreated) -> None:
        if event.thread_id not in self._threads:
            return
        self.add_message(event.thread_id, MessageRecord(
            id=event.message_id,
            author_tag=event.author_tag,
            content=event.content,
            created_at=event.created_at,
            attachments=list(event.attachments),
            author_is_bot=event.author_is_bot,
        ))

    async def fetch_container(self, thread_id: str) -> ThreadContainer:
        try:
            return self._threads[thread_id]
        except KeyError:
            raise StoreError(f"Unknown thread {thread_id}", status_code=404) from None

    async def fetch_messages(self, container_id: str, limit: int = 100) -> list[MessageRecord]:
        if container_id not in self._messages:
            raise StoreError(f"Unknown thread {container_id}", status_code=404)
        # Newest first, like Discord
        return list(reversed(self._messages[container_id]))[:limit]
