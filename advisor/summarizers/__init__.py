"""LLM summarizer backends."""

from .base import Summarizer
from .factory import build_summarizer
from .gemini_client import GeminiClient
from .ollama_client import OllamaClient

__all__ = [
    "Summarizer",
    "build_summarizer",
    "GeminiClient",
    "OllamaClient",
]
