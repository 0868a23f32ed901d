"""Shared protocol for LLM summarizer backends."""

from typing import Protocol, Sequence

from advisor.domain import ConversationTurn


class Summarizer(Protocol):
    """Anything that turns a conversation history into the next assistant message."""

    def generate(self, history: Sequence[ConversationTurn]) -> str:
        """Return the model's text; raise SummarizerError with a status code on failure."""
