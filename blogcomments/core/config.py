"""
Application configuration using Pydantic Settings.

Values are read from environment variables (or a local .env file).
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Comment engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "production"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Persistence API
    # ===========================================
    API_BASE_URL: str = "http://localhost:5000/api"
    API_TIMEOUT_SECONDS: float = 10.0

    # ===========================================
    # Auth (bearer tokens)
    # ===========================================
    AUTH_PROVIDER: Literal["mock", "jwt"] = "mock"
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = ""
    JWT_ROLE_CLAIM: str = "role"

    # ===========================================
    # Comments
    # ===========================================
    COMMENT_MIN_LENGTH: int = 1
    COMMENT_MAX_LENGTH: int = 1000

    # Circuit breaker for malformed or cyclic parent chains
    MAX_REPLY_DEPTH: int = 10

    # "newest" matches what the comment section has always shown
    REPLY_ORDER: Literal["newest", "oldest"] = "newest"

    # Temporary ids for optimistic comments
    LOCAL_ID_PREFIX: str = "local-"

    # Match confirmations without a correlation token by post + author + body
    ALLOW_HEURISTIC_RECONCILE: bool = True

    # ===========================================
    # Display fallbacks
    # ===========================================
    DEFAULT_AVATAR: str = "default-avatar.png"
    UNKNOWN_AUTHOR_NAME: str = "Unknown"
    UNKNOWN_AUTHOR_USERNAME: str = "unknown"

    @property
    def is_local(self) -> bool:
        """Check if running against a local backend."""
        return self.ENVIRONMENT == "local"

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
