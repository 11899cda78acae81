"""Message-created handling: reset the debounce timer of tracked threads."""

from __future__ import annotations

from typing import TYPE_CHECKING

from threadwatch.watch.models import HandleReason, HandleResult

if TYPE_CHECKING:
    from threadwatch.bus.events import MessageCreated
    from threadwatch.watch.registry import ThreadRegistry


def handle_message_create(event: MessageCreated, registry: ThreadRegistry) -> HandleResult:
    """Reset the timer of the thread a message landed in, if it is pending.

    Bot messages never touch the registry, otherwise bot replies posted
    into a thread would keep pushing its deadline back.
    """
    if event.author_is_bot:
        return HandleResult(handled=False, reason=HandleReason.BOT_MESSAGE)

    if registry.update_timestamp(event.thread_id):
        return HandleResult(
            handled=True,
            reason=HandleReason.TIMER_RESET,
            thread_id=event.thread_id,
        )

    return HandleResult(handled=False, reason=HandleReason.NOT_TRACKED)
