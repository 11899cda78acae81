"""ThreadProcessor: run one drained thread through the LLM.

Pipeline (each failed step short-circuits the rest):
1. Fetch the thread container
2. Check its parent channel against the allow-list
3. Fetch the message history
4. Bail out on an empty thread
5. Format the transcript and hand it to the generate callable

Every outcome is returned as a ProcessResult; nothing is raised.
The registry is only touched between awaits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable, Mapping

from loguru import logger

from threadwatch.watch.formatter import format_thread_messages
from threadwatch.watch.models import THREAD_MESSAGE_LIMIT, ProcessError, ProcessResult

if TYPE_CHECKING:
    from threadwatch.store.base import ConversationStore
    from threadwatch.watch.registry import ThreadRegistry

GenerateFn = Callable[[str], Awaitable[str]]


class ThreadProcessor:
    """Fetches, validates, formats and summarizes a single thread."""

    def __init__(
        self,
        store: ConversationStore,
        allowed_channels: Mapping[str, str],
        registry: ThreadRegistry,
        generate: GenerateFn,
        message_limit: int = THREAD_MESSAGE_LIMIT,
    ) -> None:
        self._store = store
        self._allowed_channels = allowed_channels
        self._registry = registry
        self._generate = generate
        self._message_limit = message_limit

    def is_channel_allowed(self, channel_id: str | None) -> bool:
        return channel_id is not None and channel_id in set(self._allowed_channels.values())

    async def process(self, thread_id: str) -> ProcessResult:
        try:
            thread = await self._store.fetch_container(thread_id)
        except Exception as e:
            logger.error(f"Failed to fetch thread {thread_id}: {e}")
            self._registry.remove_from_pending(thread_id)
            return ProcessResult.failed(thread_id, ProcessError.FETCH_FAILED)

        if not self.is_channel_allowed(thread.parent_id):
            logger.debug(f"Thread {thread_id}: parent channel {thread.parent_id} not allowed, skipping")
            self._registry.remove_from_pending(thread_id)
            return ProcessResult.failed(thread_id, ProcessError.CHANNEL_NOT_ALLOWED)

        try:
            messages = await self._store.fetch_messages(thread.id, limit=self._message_limit)
        except Exception as e:
            logger.error(f"Failed to fetch messages for thread {thread_id}: {e}")
            self._registry.remove_from_pending(thread_id)
            return ProcessResult.failed(thread_id, ProcessError.MESSAGES_FETCH_FAILED)

        if not messages:
            # Nothing to summarize: forget the thread entirely
            self._registry.remove_from_pending(thread_id)
            self._registry.remove_from_tracked(thread_id)
            logger.info(f"Thread {thread_id} has no messages, removing from tracked threads")
            return ProcessResult.failed(thread_id, ProcessError.NO_MESSAGES)

        transcript = format_thread_messages(messages)

        try:
            response = await self._generate(transcript)
        except Exception as e:
            logger.error(f"Failed to process messages for thread {thread_id}: {e}")
            return ProcessResult.failed(thread_id, ProcessError.PROCESSING_FAILED)

        logger.info(f"Processed thread {thread_id} of channel {thread.parent_name}")
        logger.info(response)

        self._registry.remove_from_pending(thread_id)

        return ProcessResult(
            success=True,
            thread_id=thread_id,
            channel_name=thread.parent_name,
            response=response,
        )
