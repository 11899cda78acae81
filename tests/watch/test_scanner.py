"""Tests for TimeoutScanner: one oldest-first drain per tick."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from threadwatch.watch.models import ProcessError, ProcessResult
from threadwatch.watch.registry import ThreadRegistry
from threadwatch.watch.scanner import TimeoutScanner


MINUTE = 60.0
TIMEOUT = 5 * MINUTE


class Clock:
    def __init__(self) -> None:
        self.now = 1_000_000.0

    def __call__(self) -> float:
        return self.now


def make_processor(registry: ThreadRegistry | None = None) -> MagicMock:
    """Processor double that records which threads were still pending when called."""
    processor = MagicMock()
    processor.seen_pending = []

    async def process(thread_id: str) -> ProcessResult:
        if registry is not None:
            processor.seen_pending.append(registry.is_pending(thread_id))
        return ProcessResult(success=True, thread_id=thread_id, response="ok")

    processor.process = AsyncMock(side_effect=process)
    return processor


class TestTick:
    @pytest.mark.asyncio
    async def test_nothing_due_returns_none(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        registry.add_thread("fresh", "c1", clock.now - MINUTE)
        processor = make_processor()

        result = await TimeoutScanner(registry, processor, TIMEOUT).tick()

        assert result is None
        processor.process.assert_not_awaited()
        assert registry.is_pending("fresh")

    @pytest.mark.asyncio
    async def test_empty_registry(self):
        processor = make_processor()
        assert await TimeoutScanner(ThreadRegistry(), processor, TIMEOUT).tick() is None

    @pytest.mark.asyncio
    async def test_drains_oldest_only(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        registry.add_thread("t10", "c", clock.now - 10 * MINUTE)
        registry.add_thread("t8", "c", clock.now - 8 * MINUTE)
        registry.add_thread("t12", "c", clock.now - 12 * MINUTE)
        processor = make_processor(registry)

        result = await TimeoutScanner(registry, processor, TIMEOUT).tick()

        assert result.thread_id == "t12"
        processor.process.assert_awaited_once_with("t12")
        assert [e.thread_id for e in registry.pending] == ["t10", "t8"]

    @pytest.mark.asyncio
    async def test_removes_from_pending_before_processing(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        registry.add_thread("t1", "c", clock.now - 10 * MINUTE)
        processor = make_processor(registry)

        await TimeoutScanner(registry, processor, TIMEOUT).tick()

        assert processor.seen_pending == [False]

    @pytest.mark.asyncio
    async def test_successive_ticks_drain_in_age_order(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        registry.add_thread("t10", "c", clock.now - 10 * MINUTE)
        registry.add_thread("t8", "c", clock.now - 8 * MINUTE)
        registry.add_thread("t12", "c", clock.now - 12 * MINUTE)
        registry.add_thread("fresh", "c", clock.now)
        scanner = TimeoutScanner(registry, make_processor(), TIMEOUT)

        drained = []
        while (result := await scanner.tick()) is not None:
            drained.append(result.thread_id)

        assert drained == ["t12", "t10", "t8"]
        assert [e.thread_id for e in registry.pending] == ["fresh"]

    @pytest.mark.asyncio
    async def test_failed_processing_is_not_retried(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        registry.add_thread("t1", "c", clock.now - 10 * MINUTE)
        processor = MagicMock()
        processor.process = AsyncMock(
            return_value=ProcessResult.failed("t1", ProcessError.PROCESSING_FAILED)
        )
        scanner = TimeoutScanner(registry, processor, TIMEOUT)

        first = await scanner.tick()
        second = await scanner.tick()

        assert first.error == ProcessError.PROCESSING_FAILED
        assert second is None
        assert processor.process.await_count == 1


class TestRun:
    @pytest.mark.asyncio
    async def test_run_ticks_until_stopped(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        registry.add_thread("a", "c", clock.now - 10 * MINUTE)
        registry.add_thread("b", "c", clock.now - 9 * MINUTE)
        stop = asyncio.Event()
        processed = []

        async def process(thread_id: str) -> ProcessResult:
            processed.append(thread_id)
            if len(processed) == 2:
                stop.set()
            return ProcessResult(success=True, thread_id=thread_id)

        processor = MagicMock()
        processor.process = AsyncMock(side_effect=process)

        await asyncio.wait_for(TimeoutScanner(registry, processor, TIMEOUT).run(stop, interval=0.01), timeout=2)

        assert processed == ["a", "b"]

    @pytest.mark.asyncio
    async def test_ticks_never_overlap(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        for i in range(3):
            registry.add_thread(f"t{i}", "c", clock.now - (10 - i) * MINUTE)
        stop = asyncio.Event()
        active = 0
        max_active = 0
        calls = 0

        async def process(thread_id: str) -> ProcessResult:
            nonlocal active, max_active, calls
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.02)  # slower than the scan interval
            active -= 1
            calls += 1
            if calls == 3:
                stop.set()
            return ProcessResult(success=True, thread_id=thread_id)

        processor = MagicMock()
        processor.process = AsyncMock(side_effect=process)

        await asyncio.wait_for(TimeoutScanner(registry, processor, TIMEOUT).run(stop, interval=0.001), timeout=2)

        assert calls == 3
        assert max_active == 1

    @pytest.mark.asyncio
    async def test_run_survives_tick_errors(self):
        clock = Clock()
        registry = ThreadRegistry(clock=clock)
        registry.add_thread("bad", "c", clock.now - 10 * MINUTE)
        registry.add_thread("good", "c", clock.now - 9 * MINUTE)
        stop = asyncio.Event()

        async def process(thread_id: str) -> ProcessResult:
            if thread_id == "bad":
                raise RuntimeError("boom")
            stop.set()
            return ProcessResult(success=True, thread_id=thread_id)

        processor = MagicMock()
        processor.process = AsyncMock(side_effect=process)

        await asyncio.wait_for(TimeoutScanner(registry, processor, TIMEOUT).run(stop, interval=0.001), timeout=2)

        assert [c.args[0] for c in processor.process.await_args_list] == ["bad", "good"]

    @pytest.mark.asyncio
    async def test_run_returns_immediately_when_already_stopped(self):
        stop = asyncio.Event()
        stop.set()
        processor = make_processor()
        await asyncio.wait_for(TimeoutScanner(ThreadRegistry(), processor, TIMEOUT).run(stop), timeout=1)
        processor.process.assert_not_awaited()
