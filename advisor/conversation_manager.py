"""Conversation history facade over pluggable backends."""
from typing import List, Optional

import redis

from advisor.config import settings
from advisor.conversation_store import ConversationStore, InMemoryConversationStore, RedisConversationStore
from advisor.domain import ConversationTurn, Role
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="conversation_manager")


def _init_store() -> ConversationStore:
    """Initialize the backing conversation store based on configuration."""
    logger.debug(f"Initializing conversation store: redis_url='{settings.conversation_redis_url or 'None'}'")
    if settings.conversation_redis_url:
        try:
            client = redis.Redis.from_url(settings.conversation_redis_url)
            client.ping()
            logger.info("Using RedisConversationStore")
            return RedisConversationStore(client, ttl_seconds=settings.conversation_ttl_seconds)
        except redis.exceptions.RedisError as exc:
            logger.warning("Falling back to InMemoryConversationStore (Redis unavailable)", extra={"error": str(exc)})
    return InMemoryConversationStore(ttl_seconds=settings.conversation_ttl_seconds)


_store: ConversationStore = _init_store()


def use_in_memory_store_for_tests(ttl_seconds: int | None = 3600) -> None:
    """Override store for tests to ensure isolation and determinism."""
    global _store
    _store = InMemoryConversationStore(ttl_seconds=ttl_seconds)


def conversation_key(session_id: Optional[str] = None, uid: Optional[str] = None) -> str:
    """Pick the history key: session first, then user, then the shared default timeline."""
    return session_id or uid or settings.default_conversation_key


def get_history(key: str) -> List[ConversationTurn]:
    """Return the turns for a conversation, oldest first."""
    return _store.get_history(key)


def add_user_message(key: str, text: str) -> None:
    """Record a user turn."""
    _store.append(key, ConversationTurn(role=Role.USER, text=text))


def add_assistant_message(key: str, text: str) -> None:
    """Record an assistant turn."""
    _store.append(key, ConversationTurn(role=Role.ASSISTANT, text=text))


def trim(key: str, max_turns: Optional[int] = None) -> None:
    """Keep only the newest turns (default: the configured window)."""
    _store.trim(key, settings.history_max_turns if max_turns is None else max_turns)


def delete_conversation(key: str) -> None:
    """Delete one conversation."""
    _store.delete(key)


def clear_conversations() -> None:
    """Clear all conversations from the backing store (dev/testing)."""
    _store.clear()
