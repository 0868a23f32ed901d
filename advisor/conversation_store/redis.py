"""Redis-backed conversation store with TTL."""

import json
from typing import List, Optional

from advisor.conversation_store.base import ConversationStore
from advisor.domain import ConversationTurn
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="conversation_store/redis")


class RedisConversationStore(ConversationStore):
    """Histories stored as JSON lists under `<prefix><key>` with a sliding TTL."""

    def __init__(self, client, ttl_seconds: int = 3600, prefix: str = "conversation:") -> None:
        """Initialize with a Redis client, TTL and key prefix."""
        logger.debug("Initializing RedisConversationStore")
        self.client = client
        self.ttl = ttl_seconds
        self.prefix = prefix

    def _key(self, key: str) -> str:
        """Return the Redis key for a conversation key."""
        return f"{self.prefix}{key}"

    @staticmethod
    def _dump(turns: List[ConversationTurn]) -> bytes:
        return json.dumps([t.model_dump(mode="json") for t in turns], ensure_ascii=False).encode("utf-8")

    @staticmethod
    def _load(raw: bytes) -> Optional[List[ConversationTurn]]:
        try:
            data = json.loads(raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw)
            return [ConversationTurn.model_validate(item) for item in data]
        except (ValueError, TypeError) as exc:
            logger.error("Failed to deserialize conversation: %s", exc)
            return None

    def _read(self, key: str) -> List[ConversationTurn]:
        raw = self.client.get(self._key(key))
        if not raw:
            return []
        return self._load(raw) or []

    def _write(self, key: str, turns: List[ConversationTurn]) -> None:
        self.client.setex(self._key(key), self.ttl, self._dump(turns))

    def get_history(self, key: str) -> List[ConversationTurn]:
        """Fetch a history, refreshing its TTL."""
        turns = self._read(key)
        if turns:
            try:
                self.client.expire(self._key(key), self.ttl)
            except Exception as exc:  # pragma: no cover - redis transport errors
                logger.warning("Failed to refresh conversation TTL: %s", exc)
        return turns

    def append(self, key: str, turn: ConversationTurn) -> None:
        """Append one turn. Read-modify-write; concurrent appends to one key may race."""
        turns = self._read(key)
        turns.append(turn)
        self._write(key, turns)

    def trim(self, key: str, max_turns: int) -> None:
        """Keep only the newest `max_turns` turns."""
        turns = self._read(key)
        if len(turns) <= max_turns:
            return
        self._write(key, turns[-max_turns:] if max_turns > 0 else [])

    def delete(self, key: str) -> None:
        """Delete a history if present."""
        self.client.delete(self._key(key))

    def clear(self) -> None:
        """Clear every history under the configured prefix."""
        for key in self.client.scan_iter(f"{self.prefix}*"):
            self.client.delete(key)
