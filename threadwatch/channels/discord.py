"""Discord channel implementation using Discord Gateway websocket."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import websockets
from loguru import logger

from threadwatch.bus.events import MessageCreated, ThreadCreated
from threadwatch.channels.base import BaseChannel
from threadwatch.config.schema import DiscordConfig
from threadwatch.store.discord import author_tag, parse_attachments, parse_timestamp


class DiscordChannel(BaseChannel):
    """Discord Gateway client delivering THREAD_CREATE and MESSAGE_CREATE."""

    name = "discord"

    def __init__(self, config: DiscordConfig):
        super().__init__()
        self.config = config
        self._ws: Any = None
        self._seq: int | None = None
        self._session_id: str | None = None  # For RESUME
        self._resume_url: str | None = None  # Gateway URL for resume
        self._heartbeat_task: asyncio.Task | None = None
        self._bot_user_id: str | None = None
        self._consecutive_failures: int = 0  # For exponential backoff

    async def start(self) -> None:
        """Start the Discord gateway connection."""
        if not self.config.token:
            logger.error("Discord bot token not configured")
            return

        self._running = True

        while self._running:
            try:
                url = self._resume_url or self.config.gateway_url
                logger.info("Connecting to Discord gateway...")
                async with websockets.connect(url) as ws:
                    self._ws = ws
                    self._consecutive_failures = 0
                    await self._gateway_loop()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self._consecutive_failures += 1
                # Exponential backoff: 5s, 10s, 20s, 40s, 60s max
                delay = min(5 * (2 ** (self._consecutive_failures - 1)), 60)
                logger.warning(f"Discord gateway error: {e}")
                if self._running:
                    logger.info(
                        f"Reconnecting in {delay}s "
                        f"(attempt {self._consecutive_failures})..."
                    )
                    await asyncio.sleep(delay)

    async def stop(self) -> None:
        """Stop the Discord channel."""
        self._running = False
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
        if self._ws:
            await self._ws.close()
            self._ws = None

    async def _gateway_loop(self) -> None:
        """Main gateway loop: identify, heartbeat, dispatch events."""
        if not self._ws:
            return

        async for raw in self._ws:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON from Discord gateway: {raw[:100]}")
                continue

            if not await self._handle_frame(data):
                break

    async def _handle_frame(self, data: dict[str, Any]) -> bool:
        """Handle one gateway frame. Returns False when the connection should be dropped."""
        op = data.get("op")
        event_type = data.get("t")
        seq = data.get("s")
        payload = data.get("d")

        if seq is not None:
            self._seq = seq

        if op == 10:
            # HELLO: start heartbeat, then identify or resume
            interval_ms = payload.get("heartbeat_interval", 45000)
            await self._start_heartbeat(interval_ms / 1000)
            if self._session_id and self._seq is not None:
                await self._resume()
            else:
                await self._identify()
        elif op == 0:
            await self._dispatch(event_type, payload or {})
        elif op == 7:
            # RECONNECT: keep session for RESUME
            logger.info("Discord gateway requested reconnect")
            return False
        elif op == 9:
            # INVALID_SESSION: d=True means resumable
            resumable = payload if isinstance(payload, bool) else False
            if not resumable:
                logger.warning("Discord gateway invalid session (not resumable)")
                self._session_id = None
                self._resume_url = None
                self._seq = None
            else:
                logger.info("Discord gateway invalid session (resumable)")
            return False
        elif op == 1:
            # HEARTBEAT request from server
            await self._ws.send(json.dumps({"op": 1, "d": self._seq}))
        elif op != 11:
            logger.debug(f"Discord gateway unknown op={op} t={event_type}")
        return True

    async def _dispatch(self, event_type: str | None, payload: dict[str, Any]) -> None:
        if event_type == "READY":
            self._session_id = payload.get("session_id")
            self._resume_url = payload.get("resume_gateway_url")
            self._bot_user_id = (payload.get("user") or {}).get("id")
            logger.info(f"Discord gateway READY (bot user ID: {self._bot_user_id})")
        elif event_type == "RESUMED":
            logger.info("Discord gateway RESUMED successfully")
        elif event_type == "THREAD_CREATE":
            await self._handle_thread_create(payload)
        elif event_type == "MESSAGE_CREATE":
            await self._handle_message_create(payload)

    async def _identify(self) -> None:
        """Send IDENTIFY payload."""
        if not self._ws:
            return

        identify = {
            "op": 2,
            "d": {
                "token": self.config.token,
                "intents": self.config.intents,
                "properties": {
                    "os": "threadwatch",
                    "browser": "threadwatch",
                    "device": "threadwatch",
                },
            },
        }
        logger.info(f"Discord IDENTIFY sent with intents={self.config.intents}")
        await self._ws.send(json.dumps(identify))

    async def _resume(self) -> None:
        """Send RESUME payload to reconnect without losing events."""
        if not self._ws:
            return

        resume = {
            "op": 6,
            "d": {
                "token": self.config.token,
                "session_id": self._session_id,
                "seq": self._seq,
            },
        }
        logger.info(f"Discord RESUME sent (session={self._session_id}, seq={self._seq})")
        await self._ws.send(json.dumps(resume))

    async def _start_heartbeat(self, interval_s: float) -> None:
        """Start or restart the heartbeat loop."""
        if self._heartbeat_task:
            self._heartbeat_task.cancel()

        async def heartbeat_loop() -> None:
            while self._running and self._ws:
                try:
                    await self._ws.send(json.dumps({"op": 1, "d": self._seq}))
                except Exception as e:
                    logger.warning(f"Discord heartbeat failed: {e}")
                    break
                await asyncio.sleep(interval_s)

        self._heartbeat_task = asyncio.create_task(heartbeat_loop())

    async def _handle_thread_create(self, payload: dict[str, Any]) -> None:
        thread_id = payload.get("id")
        if not thread_id:
            return
        parent_id = payload.get("parent_id")
        await self._emit_thread_created(ThreadCreated(
            thread_id=str(thread_id),
            parent_channel_id=str(parent_id) if parent_id else None,
        ))

    async def _handle_message_create(self, payload: dict[str, Any]) -> None:
        author = payload.get("author") or {}
        channel_id = payload.get("channel_id")
        if not channel_id:
            logger.debug("Discord: dropping message without channel_id")
            return

        await self._emit_message_created(MessageCreated(
            thread_id=str(channel_id),
            message_id=str(payload.get("id", "")),
            author_tag=author_tag(author),
            content=payload.get("content") or "",
            author_is_bot=bool(author.get("bot")),
            created_at=parse_timestamp(payload.get("timestamp")),
            attachments=parse_attachments(payload),
        ))
