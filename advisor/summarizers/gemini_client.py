"""Thin client for the Gemini generateContent API."""

from typing import Sequence

import requests

from advisor.config import settings
from advisor.domain import ConversationTurn, Role
from advisor.errors import SummarizerError
from utils.logging_utils import get_tagged_logger, mask_secret_params

logger = get_tagged_logger(__name__, tag="summarizers/gemini")

# Gemini calls the assistant side of a conversation "model".
_ROLE_NAMES = {Role.USER: "user", Role.ASSISTANT: "model"}


def to_gemini_contents(history: Sequence[ConversationTurn]) -> list[dict]:
    """Convert conversation turns into Gemini `contents` entries."""
    return [{"role": _ROLE_NAMES[turn.role], "parts": [{"text": turn.text}]} for turn in history]


def extract_text(data: dict) -> str:
    """Return the first candidate's first text part, or an empty string."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return ""
    return str(parts[0].get("text") or "")


class GeminiClient:
    """Minimal client for Gemini's generateContent endpoint."""

    def __init__(self, api_key: str | None = None, model: str | None = None, base_url: str | None = None,
                 timeout: float | None = None):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.url = f"{base_url or settings.gemini_base_url}/models/{self.model}:generateContent"
        self.timeout = timeout if timeout is not None else settings.summarizer_timeout_seconds

    def generate(self, history: Sequence[ConversationTurn]) -> str:
        """Send the history and return the model's reply text."""
        payload = {"contents": to_gemini_contents(history)}
        logger.debug("Gemini POST with %d turns", len(history))
        try:
            r = requests.post(self.url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            logger.error("Gemini POST timed out after %.1fs", self.timeout)
            raise SummarizerError("Gemini request timed out", status_code=504) from exc
        except requests.exceptions.RequestException as exc:
            logger.exception("Gemini POST failed: %s", mask_secret_params(str(exc)))
            raise SummarizerError(f"Gemini request failed: {mask_secret_params(str(exc))}", status_code=502) from exc

        if r.status_code != 200:
            error_text = (r.text or "")[:200]
            message = error_text
            try:
                message = r.json().get("error", {}).get("message") or error_text
            except ValueError:
                pass
            logger.error("Gemini returned status %s: %s", r.status_code, error_text)
            raise SummarizerError(message, status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as exc:
            raise SummarizerError(f"Gemini returned non-JSON response: {r.text[:200]}", status_code=502) from exc
        text = extract_text(data)
        logger.info("Gemini reply received (%d chars)", len(text))
        return text
