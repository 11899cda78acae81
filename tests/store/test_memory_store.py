"""Tests for InMemoryConversationStore."""

import pytest

from threadwatch.bus.events import MessageCreated, ThreadCreated
from threadwatch.errors import StoreError
from threadwatch.store.memory import InMemoryConversationStore


class TestInMemoryConversationStore:
    @pytest.mark.asyncio
    async def test_records_events(self):
        store = InMemoryConversationStore(channel_names={"bugs": "oxi-one-bugs"})
        await store.record_thread(ThreadCreated("t1", "bugs"))
        await store.record_message(MessageCreated(thread_id="t1", message_id="m1", author_tag="a", content="one"))
        await store.record_message(MessageCreated(thread_id="t1", message_id="m2", author_tag="b", content="two"))

        container = await store.fetch_container("t1")
        messages = await store.fetch_messages("t1")

        assert container.parent_name == "oxi-one-bugs"
        assert [m.id for m in messages] == ["m2", "m1"]

    @pytest.mark.asyncio
    async def test_ignores_messages_outside_threads(self):
        store = InMemoryConversationStore()
        await store.record_message(MessageCreated(thread_id="general", message_id="m1", author_tag="a"))
        with pytest.raises(StoreError):
            await store.fetch_messages("general")

    @pytest.mark.asyncio
    async def test_limit(self):
        store = InMemoryConversationStore()
        await store.record_thread(ThreadCreated("t1", "bugs"))
        for i in range(5):
            await store.record_message(MessageCreated(thread_id="t1", message_id=f"m{i}", author_tag="a"))
        assert [m.id for m in await store.fetch_messages("t1", limit=2)] == ["m4", "m3"]

    @pytest.mark.asyncio
    async def test_unknown_thread(self):
        with pytest.raises(StoreError):
            await InMemoryConversationStore().fetch_container("nope")
