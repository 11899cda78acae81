"""Tests for DiscordConversationStore and Discord payload parsing."""

from datetime import datetime, timezone

import httpx
import pytest

from threadwatch.errors import StoreError
from threadwatch.store.discord import (
    DiscordConversationStore,
    author_tag,
    parse_message,
)


# ── Helpers ──────────────────────────────────────────────────────────────


def message_payload(
    id: str = "111",
    username: str = "alice",
    discriminator: str = "0",
    content: str = "it broke",
    attachments: list | None = None,
    bot: bool = False,
) -> dict:
    return {
        "id": id,
        "channel_id": "thread1",
        "author": {"id": "9", "username": username, "discriminator": discriminator, "bot": bot},
        "content": content,
        "timestamp": "2026-01-01T12:00:00.123000+00:00",
        "attachments": attachments or [],
    }


def make_store(handler) -> DiscordConversationStore:
    client = httpx.AsyncClient(
        base_url="https://discord.test/api/v10",
        transport=httpx.MockTransport(handler),
    )
    return DiscordConversationStore("token", client=client)


# ── Parsing ──────────────────────────────────────────────────────────────


class TestParsing:
    def test_author_tag_new_usernames(self):
        assert author_tag({"username": "alice", "discriminator": "0"}) == "alice"

    def test_author_tag_legacy_discriminator(self):
        assert author_tag({"username": "User", "discriminator": "1234"}) == "User#1234"

    def test_author_tag_falls_back_to_id(self):
        assert author_tag({"id": "42"}) == "42"

    def test_parse_message(self):
        record = parse_message(message_payload(attachments=[
            {"url": "https://cdn/x.png", "content_type": "image/png", "filename": "x.png"},
        ]))

        assert record.id == "111"
        assert record.author_tag == "alice"
        assert record.content == "it broke"
        assert record.created_at == datetime(2026, 1, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)
        assert record.attachments[0].content_type == "image/png"
        assert record.attachments[0].url == "https://cdn/x.png"
        assert record.author_is_bot is False

    def test_parse_message_missing_content(self):
        payload = message_payload()
        payload["content"] = None
        assert parse_message(payload).content == ""


# ── Store ────────────────────────────────────────────────────────────────


class TestDiscordConversationStore:
    @pytest.mark.asyncio
    async def test_fetch_container_resolves_parent_name(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            if request.url.path.endswith("/channels/thread1"):
                return httpx.Response(200, json={"id": "thread1", "parent_id": "chan1", "type": 11})
            if request.url.path.endswith("/channels/chan1"):
                return httpx.Response(200, json={"id": "chan1", "name": "oxi-one-bugs"})
            return httpx.Response(404, json={"message": "Unknown Channel"})

        store = make_store(handler)
        container = await store.fetch_container("thread1")
        await store.fetch_container("thread1")
        await store.close()

        assert container.id == "thread1"
        assert container.parent_id == "chan1"
        assert container.parent_name == "oxi-one-bugs"
        # Parent name cached after the first lookup
        assert calls.count("/api/v10/channels/chan1") == 1

    @pytest.mark.asyncio
    async def test_fetch_container_without_parent(self):
        store = make_store(lambda r: httpx.Response(200, json={"id": "dm1", "type": 1}))
        container = await store.fetch_container("dm1")
        assert container.parent_id is None
        assert container.parent_name == ""

    @pytest.mark.asyncio
    async def test_fetch_container_not_found(self):
        store = make_store(lambda r: httpx.Response(404, json={"message": "Unknown Channel"}))
        with pytest.raises(StoreError) as exc:
            await store.fetch_container("nope")
        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error_becomes_store_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = make_store(handler)
        with pytest.raises(StoreError):
            await store.fetch_container("thread1")

    @pytest.mark.asyncio
    async def test_fetch_messages(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["limit"] = request.url.params.get("limit")
            return httpx.Response(200, json=[message_payload(id="2"), message_payload(id="1")])

        store = make_store(handler)
        messages = await store.fetch_messages("thread1", limit=100)

        assert seen["limit"] == "100"
        assert [m.id for m in messages] == ["2", "1"]

    @pytest.mark.asyncio
    async def test_fetch_messages_limit_clamped(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["limit"] = request.url.params.get("limit")
            return httpx.Response(200, json=[])

        store = make_store(handler)
        assert await store.fetch_messages("thread1", limit=500) == []
        assert seen["limit"] == "100"

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr("threadwatch.store.discord.asyncio.sleep", fake_sleep)
        responses = [
            httpx.Response(429, json={"retry_after": 0.5}),
            httpx.Response(200, json=[message_payload()]),
        ]
        store = make_store(lambda r: responses.pop(0))

        messages = await store.fetch_messages("thread1")

        assert len(messages) == 1
        assert sleeps == [0.5]

    @pytest.mark.asyncio
    async def test_rate_limit_gives_up(self, monkeypatch):
        async def fake_sleep(seconds):
            pass

        monkeypatch.setattr("threadwatch.store.discord.asyncio.sleep", fake_sleep)
        store = make_store(lambda r: httpx.Response(429, json={"retry_after": 0.1}))

        with pytest.raises(StoreError) as exc:
            await store.fetch_messages("thread1")
        assert exc.value.status_code == 429
