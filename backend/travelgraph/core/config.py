# backend/travelgraph/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime configuration for the social engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(default="development", description="Deployment environment name")
    database_url: str = Field(
        default="sqlite:///./travelgraph.db",
        description="SQLAlchemy database URL (PostgreSQL in production)",
    )
    sql_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    log_level: str = Field(default="INFO", description="Root log level")

    # Discovery
    match_rejection_cooldown_days: int = Field(
        default=3,
        ge=0,
        description="Days a rejected match suppresses re-matching between the pair",
    )

    # Messaging
    message_max_length: int = Field(default=2000, ge=1)
    # Prefix for links embedded in shared-trip messages
    public_base_url: str = Field(default="")

    # Pagination
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    is_testing: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return (value or "development").strip().lower()

    @property
    def is_production(self) -> bool:
        return self.environment in {"prod", "production"}

    def clamp_page_size(self, limit: Optional[int]) -> int:
        """Bound a caller supplied page size to the configured window."""
        if limit is None or limit <= 0:
            return self.default_page_size
        return min(limit, self.max_page_size)


settings = Settings()
