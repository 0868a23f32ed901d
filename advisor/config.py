"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the weather advisor service."""
    model_config = SettingsConfigDict(env_prefix="ADVISOR_", extra="ignore")

    # Provider credentials
    openweather_api_key: str | None = None
    google_maps_api_key: str | None = None
    ambee_api_key: str | None = None
    gemini_api_key: str | None = None

    # Summarizer
    summarizer_backend: str = "gemini"  # options: gemini, ollama
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "phi4-mini"
    ollama_retries: int = 1
    ollama_retry_backoff_sec: float = 0.5
    summarizer_timeout_seconds: float = 60.0

    # Outbound HTTP
    http_timeout_seconds: float = 10.0
    fetch_timeout_seconds: float = 25.0  # per fetch, covers the air-quality fallback pair
    fetch_workers: int = 3
    units: str = "metric"
    weather_lang: str = "kr"

    # Conversation history
    history_max_turns: int = 10
    conversation_redis_url: str | None = None
    conversation_ttl_seconds: int = 3600
    default_conversation_key: str = "global"

    # API surface
    api_key: str | None = None
    api_key_redis_url: str | None = None
    api_key_redis_set: str = "api_keys"
    max_user_message_chars: int = 2000

    profiles_path: str | None = None

    @field_validator("ollama_base_url", "gemini_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("summarizer_backend", mode="after")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        """Backend names are matched case-insensitively."""
        return str(v).strip().lower()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'gemini_api_key', 'api_key'})}")
