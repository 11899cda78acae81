"""Conversation stores."""

from threadwatch.store.base import ConversationStore
from threadwatch.store.discord import DiscordConversationStore
from threadwatch.store.memory import InMemoryConversationStore

__all__ = ["ConversationStore", "DiscordConversationStore", "InMemoryConversationStore"]
