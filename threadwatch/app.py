"""Service wiring: channel events → registry, scanner loop → processor."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from threadwatch.watch.handler import handle_message_create
from threadwatch.watch.models import HandleReason
from threadwatch.watch.processor import GenerateFn, ThreadProcessor
from threadwatch.watch.registry import ThreadRegistry
from threadwatch.watch.scanner import TimeoutScanner

if TYPE_CHECKING:
    from threadwatch.bus.events import MessageCreated, ThreadCreated
    from threadwatch.channels.base import BaseChannel
    from threadwatch.config.schema import Config
    from threadwatch.store.base import ConversationStore
    from threadwatch.watch.models import HandleResult, ProcessResult


class ThreadWatchService:
    """Owns the registry and runs the scanner for one set of channels."""

    def __init__(
        self,
        config: Config,
        store: ConversationStore,
        generate: GenerateFn,
        registry: ThreadRegistry | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.registry = registry or ThreadRegistry()
        self.processor = ThreadProcessor(
            store=store,
            allowed_channels=config.channels,
            registry=self.registry,
            generate=generate,
            message_limit=config.watch.message_limit,
        )
        self.scanner = TimeoutScanner(
            registry=self.registry,
            processor=self.processor,
            timeout=config.watch.timeout_seconds,
        )
        self._channels: list[BaseChannel] = []
        self._stop = asyncio.Event()

    def attach(self, channel: BaseChannel) -> None:
        """Subscribe to a channel's thread and message events."""
        channel.on_thread_created(self.on_thread_create)
        channel.on_message_created(self.on_message_create)
        self._channels.append(channel)

    # ── Event handlers ───────────────────────────────────────────────

    async def on_thread_create(self, event: ThreadCreated) -> None:
        self.registry.add_thread(event.thread_id, event.parent_channel_id)
        logger.info(f"Thread created: {event.thread_id}")

    async def on_message_create(self, event: MessageCreated) -> HandleResult:
        result = handle_message_create(event, self.registry)
        if result.handled:
            logger.info(f"Timer reset for thread {result.thread_id}")
        elif result.reason == HandleReason.NOT_TRACKED:
            logger.debug(f"Message from {event.author_tag} outside tracked threads")
        return result

    async def tick(self) -> ProcessResult | None:
        return await self.scanner.tick()

    # ── Lifecycle ────────────────────────────────────────────────────

    async def start(self) -> None:
        """Run the scanner and all attached channels until stop()."""
        self._stop.clear()
        tasks = [asyncio.create_task(ch.start()) for ch in self._channels]
        try:
            await self.scanner.run(self._stop, interval=self.config.watch.scan_interval_seconds)
        finally:
            for ch in self._channels:
                await ch.stop()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self.store.close()

    def stop(self) -> None:
        self._stop.set()


def build_service(config: Config) -> ThreadWatchService:
    """Production wiring: Discord gateway + REST store + LiteLLM summarizer."""
    from threadwatch.agent.summarizer import ThreadSummarizer
    from threadwatch.channels.discord import DiscordChannel
    from threadwatch.providers.litellm_provider import LiteLLMProvider
    from threadwatch.providers.registry import ModelRegistry
    from threadwatch.store.discord import DiscordConversationStore

    provider = LiteLLMProvider(
        api_key=config.llm.api_key or None,
        api_base=config.llm.api_base or None,
        default_model=config.llm.model,
        registry=ModelRegistry.load(config.llm.models_file),
        fallback_models=config.llm.fallback_models,
        timeout=config.llm.timeout,
        max_retries=config.llm.max_retries,
    )
    summarizer = ThreadSummarizer(
        provider,
        system_prompt=config.llm.system_prompt,
        max_tokens=config.llm.max_tokens,
        temperature=config.llm.temperature,
    )
    store = DiscordConversationStore(config.discord.token, api_base=config.discord.api_base)
    service = ThreadWatchService(config, store, summarizer)
    service.attach(DiscordChannel(config.discord))
    return service


def main() -> None:
    from threadwatch.config.loader import load_config
    from threadwatch.log import setup_logging

    config = load_config()
    setup_logging(config.log_level)
    if not config.discord.token:
        logger.error("Discord bot token not configured (set BOT_TOKEN)")
        raise SystemExit(1)

    service = build_service(config)
    try:
        asyncio.run(service.start())
    except KeyboardInterrupt:
        logger.info("Shutting down")
