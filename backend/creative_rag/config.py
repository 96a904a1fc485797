from functools import lru_cache
from pathlib import Path
import os

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

from creative_rag.exceptions import InvalidConfiguration


PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOCAL_ENV_FILE = PROJECT_ROOT / ".env.local"

if LOCAL_ENV_FILE.exists():
    load_dotenv(LOCAL_ENV_FILE, override=True)


class Settings(BaseSettings):
    class Config:
        env_file = ".env"
        extra = "ignore"
    database_url: str = "sqlite:///./creative_rag.db"
    database_public_url: str = ""
    environment: str = "development"

    openai_api_key: str | None = Field(default=None)
    embedding_model: str = Field(default="text-embedding-3-small")
    embedding_dim: int = Field(default=1536)
    embedding_max_chars: int = Field(default=8000)
    completion_model: str = Field(default="gpt-4o-mini")
    completion_max_context_tokens: int = Field(default=12000)
    completion_response_tokens: int = Field(default=1024)
    completion_temperature: float = Field(default=0.3)
    request_timeout_seconds: float = Field(default=60.0)

    chunk_size: int = Field(default=1000)
    chunk_overlap: int = Field(default=200)
    max_concurrency: int = Field(default=4)  # external services rate-limit
    retry_attempts: int = Field(default=3)
    retry_base_delay_seconds: float = Field(default=0.5)
    retry_max_delay_seconds: float = Field(default=8.0)

    analysis_confidence_score: float = Field(default=0.85)
    analysis_confidence_no_text: float = Field(default=0.5)

    default_query_limit: int = Field(default=5)

    def get_database_url(self) -> str:
        """
        Get the appropriate database URL.
        Prefers DATABASE_PUBLIC_URL for local development (external access).
        Falls back to DATABASE_URL.
        """
        public_url = os.getenv('DATABASE_PUBLIC_URL') or self.database_public_url
        internal_url = os.getenv('DATABASE_URL') or self.database_url

        if public_url:
            return public_url

        return internal_url


def validate_settings(settings: Settings) -> Settings:
    """Fail fast on settings that would break chunking, the worker pool or retries."""
    if settings.chunk_size <= 0:
        raise InvalidConfiguration(f"chunk_size must be positive, got {settings.chunk_size}")
    if settings.chunk_overlap < 0:
        raise InvalidConfiguration(f"chunk_overlap must not be negative, got {settings.chunk_overlap}")
    if settings.chunk_overlap >= settings.chunk_size:
        raise InvalidConfiguration(
            f"chunk_overlap ({settings.chunk_overlap}) must be smaller than chunk_size ({settings.chunk_size})"
        )
    if settings.max_concurrency < 1:
        raise InvalidConfiguration(f"max_concurrency must be at least 1, got {settings.max_concurrency}")
    if settings.retry_attempts < 1:
        raise InvalidConfiguration(f"retry_attempts must be at least 1, got {settings.retry_attempts}")
    if settings.embedding_dim < 1:
        raise InvalidConfiguration(f"embedding_dim must be positive, got {settings.embedding_dim}")
    if settings.completion_response_tokens >= settings.completion_max_context_tokens:
        raise InvalidConfiguration("completion_response_tokens must leave room for the prompt")
    return settings


@lru_cache()
def get_settings():
    return Settings()
