"""Conversation store backed by the Discord REST API."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import httpx
from loguru import logger

from threadwatch.bus.events import Attachment, MessageRecord, ThreadContainer
from threadwatch.errors import StoreError
from threadwatch.store.base import ConversationStore


DISCORD_API_BASE = "https://discord.com/api/v10"
MAX_MESSAGES_PER_REQUEST = 100       # Discord caps ?limit= at 100
RATE_LIMIT_ATTEMPTS = 3


# ── Payload parsing (shared with the gateway channel) ───────────────────


def author_tag(author: dict[str, Any]) -> str:
    """Render a user the way Discord clients do: "name", or "name#1234" for legacy accounts."""
    username = author.get("username") or str(author.get("id", "unknown"))
    discriminator = author.get("discriminator")
    if discriminator and discriminator != "0":
        return f"{username}#{discriminator}"
    return username


def parse_timestamp(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_attachments(payload: dict[str, Any]) -> list[Attachment]:
    return [
        Attachment(
            url=a.get("url", ""),
            content_type=a.get("content_type"),
            filename=a.get("filename", ""),
        )
        for a in payload.get("attachments") or []
    ]


def parse_message(payload: dict[str, Any]) -> MessageRecord:
    author = payload.get("author") or {}
    return MessageRecord(
        id=str(payload.get("id", "")),
        author_tag=author_tag(author),
        content=payload.get("content") or "",
        created_at=parse_timestamp(payload.get("timestamp")),
        attachments=parse_attachments(payload),
        author_is_bot=bool(author.get("bot")),
    )


# ── Store ───────────────────────────────────────────────────────────────


class DiscordConversationStore(ConversationStore):
    """Fetches threads and their messages over Discord REST.

    Parent channel names are cached: a thread's parent rarely changes and
    the name is only used for logging and results.
    """

    def __init__(
        self,
        token: str,
        api_base: str = DISCORD_API_BASE,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._http = client or httpx.AsyncClient(
            base_url=api_base,
            timeout=timeout,
            headers={"Authorization": f"Bot {token}"},
        )
        self._channel_names: dict[str, str] = {}  # channel_id -> name

    async def close(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON resource, honouring 429 retry_after."""
        for attempt in range(RATE_LIMIT_ATTEMPTS):
            try:
                response = await self._http.get(path, params=params)
            except httpx.HTTPError as e:
                raise StoreError(f"GET {path} failed: {e}") from e

            if response.status_code == 429 and attempt < RATE_LIMIT_ATTEMPTS - 1:
                retry_after = float(response.json().get("retry_after", 1.0))
                logger.warning(f"Discord rate limited on {path}, retrying in {retry_after}s")
                await asyncio.sleep(retry_after)
                continue

            if response.is_error:
                raise StoreError(
                    f"GET {path} returned {response.status_code}",
                    status_code=response.status_code,
                )
            return response.json()

        raise StoreError(f"GET {path} still rate limited after {RATE_LIMIT_ATTEMPTS} attempts", status_code=429)

    async def _channel_name(self, channel_id: str) -> str:
        if channel_id not in self._channel_names:
            data = await self._get(f"/channels/{channel_id}")
            self._channel_names[channel_id] = data.get("name") or channel_id
        return self._channel_names[channel_id]

    async def fetch_container(self, thread_id: str) -> ThreadContainer:
        data = await self._get(f"/channels/{thread_id}")
        parent_id = data.get("parent_id")
        parent_name = await self._channel_name(str(parent_id)) if parent_id else ""
        return ThreadContainer(
            id=str(data.get("id", thread_id)),
            parent_id=str(parent_id) if parent_id else None,
            parent_name=parent_name,
        )

    async def fetch_messages(self, container_id: str, limit: int = 100) -> list[MessageRecord]:
        limit = max(1, min(limit, MAX_MESSAGES_PER_REQUEST))
        data = await self._get(f"/channels/{container_id}/messages", params={"limit": limit})
        return [parse_message(m) for m in data]
