from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import logging

# Width of the short_code column
MAX_SHORT_CODE_LENGTH = 20


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """
    
    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    
    # Application
    app_name: str = "Shortlink"
    app_version: str = "1.0.0"
    
    # Database
    database_url: str = "sqlite:///./shortlink.db"
    
    # URL Shortener specific
    base_url: str = "http://127.0.0.1:8000"
    short_code_length: int = Field(default=6, gt=0, le=MAX_SHORT_CODE_LENGTH)
    max_generation_attempts: int = Field(default=10, gt=0)
    
    # Paths that can never be a short code or alias
    reserved_paths: List[str] = [
        "api", "docs", "redoc", "openapi.json", "urls", "info",
        "delete", "shorten", "analytics", "health",
    ]
    
    # Storage backend
    store_backend: str = "sqlalchemy"  # Options: "sqlalchemy", "memory"
    
    # Cache settings
    cache_backend: str = "memory"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600  # Cache TTL in seconds (1 hour)
    
    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class ShortenerConfig(BaseModel):
    """
    Explicit configuration handed to the core services at construction time.

    Services never read `settings` directly; the wiring layer builds one of
    these and passes it in.
    """
    short_code_length: int = Field(default=6, gt=0, le=MAX_SHORT_CODE_LENGTH)
    max_generation_attempts: int = Field(default=10, gt=0)
    base_url: str = "http://127.0.0.1:8000"

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls, source: Settings) -> "ShortenerConfig":
        return cls(
            short_code_length=source.short_code_length,
            max_generation_attempts=source.max_generation_attempts,
            base_url=source.base_url.rstrip("/"),
        )


# Create settings instance
settings = Settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)