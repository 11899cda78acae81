"""Base class for event channels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Awaitable, Callable

from loguru import logger

if TYPE_CHECKING:
    from threadwatch.bus.events import MessageCreated, ThreadCreated

ThreadCreatedHandler = Callable[["ThreadCreated"], Awaitable[None]]
MessageCreatedHandler = Callable[["MessageCreated"], Awaitable[None]]


class BaseChannel(ABC):
    """A source of thread/message events.

    Subclasses call _emit_thread_created / _emit_message_created; the
    owner wires handlers in with on_thread_created / on_message_created.
    """

    name: str = "base"

    def __init__(self) -> None:
        self._running = False
        self._thread_handlers: list[ThreadCreatedHandler] = []
        self._message_handlers: list[MessageCreatedHandler] = []

    @property
    def is_running(self) -> bool:
        return self._running

    def on_thread_created(self, handler: ThreadCreatedHandler) -> None:
        self._thread_handlers.append(handler)

    def on_message_created(self, handler: MessageCreatedHandler) -> None:
        self._message_handlers.append(handler)

    async def _emit_thread_created(self, event: ThreadCreated) -> None:
        for handler in self._thread_handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.exception(f"{self.name}: thread handler failed for {event.thread_id}: {e}")

    async def _emit_message_created(self, event: MessageCreated) -> None:
        for handler in self._message_handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.exception(f"{self.name}: message handler failed for {event.message_id}: {e}")

    @abstractmethod
    async def start(self) -> None:
        """Connect and start delivering events. Runs until stop()."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...
