"""Mock channel for tests and local runs.

Injects events through the same emit path the Discord channel uses, so
the service handles mock events identically to real ones.

Usage:
    mock = MockChannel()
    service.attach(mock)
    await mock.inject_thread("t1", parent_channel_id="bugs")
    await mock.inject_message("hello", thread_id="t1")
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from loguru import logger

from threadwatch.bus.events import Attachment, MessageCreated, ThreadCreated
from threadwatch.channels.base import BaseChannel


class MockChannel(BaseChannel):
    """Programmatic event source."""

    name = "mock"

    async def start(self) -> None:
        self._running = True
        logger.debug("MockChannel started")

    async def stop(self) -> None:
        self._running = False
        logger.debug("MockChannel stopped")

    async def inject_thread(self, thread_id: str, parent_channel_id: str | None = None) -> None:
        await self._emit_thread_created(ThreadCreated(thread_id, parent_channel_id))

    async def inject_message(
        self,
        content: str,
        thread_id: str,
        *,
        author_tag: str = "tester",
        author_is_bot: bool = False,
        message_id: str | None = None,
        attachments: list[Attachment] | None = None,
    ) -> None:
        await self._emit_message_created(MessageCreated(
            thread_id=thread_id,
            message_id=message_id or str(uuid.uuid4()),
            author_tag=author_tag,
            content=content,
            author_is_bot=author_is_bot,
            created_at=datetime.now(timezone.utc),
            attachments=attachments or [],
        ))
