"""Conversation history backends."""

from .base import ConversationStore
from .memory import InMemoryConversationStore
from .redis import RedisConversationStore

__all__ = [
    "ConversationStore",
    "InMemoryConversationStore",
    "RedisConversationStore",
]
