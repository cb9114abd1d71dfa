# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Set

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


NON_PROD_SITE_MODES: Set[str] = {"local", "dev", "development", "stg", "staging", "preview"}
PROD_SITE_MODES: Set[str] = {"prod", "production", "live"}


def _classify_site_mode(raw_site_mode: str | None) -> tuple[str, bool, bool]:
    """Return normalized site mode with production/non-prod classification."""

    normalized = (raw_site_mode or "").strip().lower()
    is_prod = normalized in PROD_SITE_MODES
    is_non_prod = normalized in NON_PROD_SITE_MODES
    return normalized, is_prod, is_non_prod


if os.getenv("CI") or is_running_tests():
    _DEFAULT_SECRET_KEY = SecretStr("ci-test-secret-key-not-for-production")
else:
    _DEFAULT_SECRET_KEY = SecretStr("dev-secret-key-change-me")


class Settings(BaseSettings):
    # Identity tokens (issued by the account service, verified here)
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        description="Secret key for JWT tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    # Environment (derived from SITE_MODE)
    site_mode: str = Field(default_factory=lambda: os.getenv("SITE_MODE", "local"))
    environment: str = (
        "production" if _classify_site_mode(os.getenv("SITE_MODE", "local"))[1] else "development"
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    # Database
    database_url: str = Field(
        default="sqlite:///./tourguide.db",
        description="SQLAlchemy URL for the primary database",
    )
    test_database_url: str = Field(
        default="sqlite:///./tourguide_test.db",
        description="SQLAlchemy URL used by the test suite",
    )
    db_pool_size: int = 10
    db_max_overflow: int = 5
    is_testing: bool = False  # Set to True when running tests

    # Slot mutual exclusion
    redis_url: str = "redis://localhost:6379/0"
    lock_namespace: str = "tourguide"
    booking_lock_backend: Literal["redis", "local"] = Field(
        default="redis",
        description="Where per-slot booking mutexes live (redis, or in-process for single workers)",
    )
    booking_lock_ttl_seconds: int = Field(default=30, ge=1)
    booking_lock_wait_seconds: float = Field(
        default=5.0,
        ge=0,
        description="How long a contender waits for a slot mutex before giving up",
    )

    # Trip search
    search_default_page_size: int = Field(default=12, ge=1)
    search_max_page_size: int = Field(default=100, ge=1)

    production_database_indicators: list[str] = [
        "supabase.com",
        "amazonaws.com",
        "database.azure.com",
        "neon.tech",
        "render.com",
    ]

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,  # allows SECRET_KEY to match secret_key
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    def get_database_url(self) -> str:
        """Get the appropriate database URL based on context."""
        if self.is_testing or is_running_tests():
            return self.test_database_url
        return self.database_url

    def is_production_database(self, url: str | None = None) -> bool:
        """Check if a database URL appears to be a production database."""
        check_url = url or self.database_url or ""
        return any(
            indicator in check_url.lower() for indicator in self.production_database_indicators
        )


settings = Settings()
