"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Node Resolve"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Node store (libSQL / SQLite)
    database_url: str = Field(default="file:nodes.db")
    database_auth_token: str | None = Field(default=None)
    db_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts for statements failing on a locked database",
    )

    # Resolution defaults
    default_threshold: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a candidate to count",
    )
    default_limit: int = Field(default=5, description="Max candidates returned")
    exact_candidate_limit: int = Field(default=50, ge=1)
    fuzzy_candidate_limit: int = Field(default=100, ge=1)
    semantic_candidate_limit: int = Field(default=20, ge=1)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
