"""Shared protocol for conversation history backends."""

from typing import List, Protocol

from advisor.domain import ConversationTurn


class ConversationStore(Protocol):
    """Ordered, per-key conversation histories with an append+trim contract."""

    def get_history(self, key: str) -> List[ConversationTurn]:
        """Return the turns for a key, oldest first; empty when missing or expired."""

    def append(self, key: str, turn: ConversationTurn) -> None:
        """Append one turn to the end of a key's history, creating it if needed."""

    def trim(self, key: str, max_turns: int) -> None:
        """Drop the oldest turns so at most `max_turns` remain."""

    def delete(self, key: str) -> None:
        """Delete a key's history without raising if it is absent."""

    def clear(self) -> None:
        """Clear all stored histories."""
