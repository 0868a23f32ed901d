"""Factory helpers for choosing a summarizer backend at startup."""

from __future__ import annotations

from advisor import config
from advisor.summarizers.base import Summarizer
from advisor.summarizers.gemini_client import GeminiClient
from advisor.summarizers.ollama_client import OllamaClient
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="summarizers/factory")


DEFAULT_BACKEND = "gemini"


def build_summarizer(settings: config.Settings | None = None) -> Summarizer:
    """Instantiate the configured summarizer backend."""
    settings = settings or config.settings
    backend = (settings.summarizer_backend or DEFAULT_BACKEND).lower()

    if backend == "gemini":
        if not settings.gemini_api_key:
            logger.warning("Gemini selected but ADVISOR_GEMINI_API_KEY is not set")
        logger.info("Using Gemini summarizer", extra={"model": settings.gemini_model})
        return GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.summarizer_timeout_seconds,
        )

    if backend == "ollama":
        logger.info("Using Ollama summarizer", extra={"model": settings.ollama_model})
        return OllamaClient()

    raise ValueError(f"Unknown summarizer backend '{backend}'")
