"""Thin client for calling a local Ollama chat API."""

import time
from typing import Sequence

import requests

from advisor.config import settings
from advisor.domain import ConversationTurn
from advisor.errors import SummarizerError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="summarizers/ollama")


class OllamaClient:
    """Minimal client for the Ollama chat API."""
    def __init__(self):
        """Initialize client configuration from settings."""
        self.url = f"{settings.ollama_base_url}/api/chat"
        self.model = settings.ollama_model
        self.max_retries = settings.ollama_retries
        self.retry_backoff_sec = settings.ollama_retry_backoff_sec
        self.timeout = settings.summarizer_timeout_seconds

    def generate(self, history: Sequence[ConversationTurn]) -> str:
        """Send the history as chat messages and return the assistant content."""
        payload = {
            "model": self.model,
            "messages": [{"role": turn.role.value, "content": turn.text} for turn in history],
            "stream": False,
        }

        for attempt in range(self.max_retries + 1):
            try:
                r = requests.post(self.url, json=payload, timeout=self.timeout)
                logger.info(
                    "Ollama POST took %.2fs, response: %s",
                    r.elapsed.total_seconds(),
                    r.text[:200],
                )
            except requests.exceptions.Timeout as exc:
                raise SummarizerError("Ollama request timed out", status_code=504) from exc
            except requests.exceptions.RequestException as exc:
                logger.exception("Ollama POST failed on attempt %d: %s", attempt + 1, exc)
                if attempt < self.max_retries:
                    time.sleep(self.retry_backoff_sec)
                    continue
                raise SummarizerError(f"Ollama request failed: {exc}", status_code=502) from exc

            if r.status_code == 200:
                break

            error_text = (r.text or "")[:200]
            # Ollama occasionally drops the stream mid-load; that one is worth a retry.
            if "EOF" in error_text and attempt < self.max_retries:
                logger.warning("Ollama returned EOF; retrying (attempt %d/%d).", attempt + 1, self.max_retries + 1)
                time.sleep(self.retry_backoff_sec)
                continue
            raise SummarizerError(
                f"Ollama POST failed with status {r.status_code}: {error_text} (model={self.model})",
                status_code=r.status_code,
            )

        try:
            data = r.json()
        except ValueError as exc:
            raise SummarizerError(f"Ollama returned non-JSON response: {r.text[:200]}", status_code=502) from exc
        content = data.get("message", {}).get("content", "")
        if isinstance(content, (dict, list)):
            content = str(content)
        return content
