"""
core/config.py
--------------
Centralised settings management using pydantic-settings.
All configuration is loaded from environment variables / .env file.
This is the single source of truth for library-wide defaults.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ──────────────────────────────────────────────────────────────
    APP_NAME: str = "multitenant-sql"
    DEBUG: bool = False

    # ── Tenancy ──────────────────────────────────────────────────────────
    DEFAULT_PARTITION_KEY: str = "tenant_id"
    TENANT_HEADER: str = "X-Tenant-ID"
    WRITE_ONLY_MODE: bool = False
    # Only link a relation into joins at or after its own join in FROM
    FORWARD_JOIN_LINKS_ONLY: bool = False

    # ── Rendering ────────────────────────────────────────────────────────
    SQL_DIALECT: Optional[str] = None  # e.g. "postgresql", "sqlite"
    STATEMENT_CACHE_SIZE: int = 256

    @field_validator("SQL_DIALECT", mode="before")
    @classmethod
    def blank_dialect_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings factory.
    Use this everywhere to avoid re-reading .env on every call.
    """
    return Settings()


settings = get_settings()
