"""In-memory conversation store with TTL, intended for single-process deployments and tests."""

import threading
import time
from typing import Any, List

from advisor.conversation_store.base import ConversationStore
from advisor.domain import ConversationTurn
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="conversation_store/in_memory")


class InMemoryConversationStore(ConversationStore):
    """Thread-safe, TTL-aware in-memory histories."""

    def __init__(self, ttl_seconds: int | None = 3600) -> None:
        """Initialize the store; a TTL of None keeps histories until cleared."""
        logger.debug("Initializing InMemoryConversationStore")
        self.ttl = ttl_seconds
        self._conversations: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _next_expiry(self) -> float | None:
        if self.ttl is None:
            return None
        return time.monotonic() + self.ttl

    def _live_entry(self, key: str) -> dict[str, Any] | None:
        """Return the entry for key, evicting it if expired. Caller holds the lock."""
        entry = self._conversations.get(key)
        if entry is None:
            return None
        exp = entry["exp"]
        if exp is not None and exp < time.monotonic():
            self._conversations.pop(key, None)
            return None
        return entry

    def get_history(self, key: str) -> List[ConversationTurn]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return []
            entry["exp"] = self._next_expiry()
            return list(entry["turns"])

    def append(self, key: str, turn: ConversationTurn) -> None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                entry = {"turns": [], "exp": None}
                self._conversations[key] = entry
            entry["turns"].append(turn)
            entry["exp"] = self._next_expiry()

    def trim(self, key: str, max_turns: int) -> None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return
            if max_turns <= 0:
                entry["turns"] = []
            elif len(entry["turns"]) > max_turns:
                entry["turns"] = entry["turns"][-max_turns:]

    def delete(self, key: str) -> None:
        with self._lock:
            self._conversations.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._conversations.clear()
