"""Runtime configuration helpers.

Classes:
    Settings: Pydantic settings model capturing environment-driven defaults.

Functions:
    get_settings(): Return a cached Settings instance for dependency injection.
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DISCLOSURE = "AI reconstruction based on your recorded words."


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Memoir Echo API"
    database_url: str = "sqlite+aiosqlite:///./data/memoir.db"
    openai_api_key: SecretStr | None = None
    openai_chat_model: str = "gpt-4.1-mini"
    openai_embedding_model: str = "text-embedding-3-small"
    openai_timeout_seconds: float = 30.0
    embedding_dimensions: int | None = None
    embedding_max_chars: int = 3000
    retrieval_pool_size: int = 200
    retrieval_top_k: int = 5
    retrieval_min_score: float = 0.1
    strict_vector_dimensions: bool = False
    chat_temperature: float = 0.7
    chat_max_tokens: int = 400
    fallback_match_limit: int = 3
    reindex_batch_limit: int = 100
    list_default_limit: int = 50
    list_max_limit: int = 500
    disclosure_text: str = DEFAULT_DISCLOSURE
    default_profile_name: str = "Me"
    log_level: str = "INFO"
    log_json: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


@lru_cache()
def get_settings() -> Settings:
    return Settings()
