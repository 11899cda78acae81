"""Periodic timeout scan: drain the oldest overdue thread, one per tick."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from threadwatch.watch.models import SCAN_INTERVAL_SECONDS, THREAD_TIMEOUT_SECONDS

if TYPE_CHECKING:
    from threadwatch.watch.models import ProcessResult
    from threadwatch.watch.processor import ThreadProcessor
    from threadwatch.watch.registry import ThreadRegistry


class TimeoutScanner:
    """Selects overdue threads and hands them to the processor."""

    def __init__(
        self,
        registry: ThreadRegistry,
        processor: ThreadProcessor,
        timeout: float = THREAD_TIMEOUT_SECONDS,
    ) -> None:
        self._registry = registry
        self._processor = processor
        self._timeout = timeout

    async def tick(self) -> ProcessResult | None:
        """Drain at most one overdue thread.

        The selected thread leaves the pending set before processing
        starts, so a slow LLM call can't get it picked twice. Any other
        overdue threads wait for the following ticks, oldest first.
        """
        due = self._registry.due_for_processing(self._timeout)
        if not due:
            return None

        entry = due[0]
        self._registry.remove_from_pending(entry.thread_id)
        logger.debug(f"Scanner: draining thread {entry.thread_id} ({len(due) - 1} more overdue)")
        return await self._processor.process(entry.thread_id)

    async def run(
        self,
        stop_event: asyncio.Event,
        interval: float = SCAN_INTERVAL_SECONDS,
    ) -> None:
        """Tick every `interval` seconds until `stop_event` is set.

        Ticks run back to back on this task, never concurrently.
        """
        logger.info(f"Scanner started (timeout={self._timeout}s, interval={interval}s)")
        while not stop_event.is_set():
            try:
                result = await self.tick()
                if result is not None and not result.success:
                    logger.info(f"Thread {result.thread_id} not processed: {result.error.value}")
            except Exception as e:
                logger.exception(f"Scanner: tick failed: {e}")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Scanner stopped")
