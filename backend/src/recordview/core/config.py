"""Configuration settings for the application.

This module defines the configuration settings using Pydantic's
SettingsConfigDict to load environment variables from a .env file.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("uvicorn")


class Settings(BaseSettings):
    """Settings class for the application."""

    # ENVIRONMENT CONFIG
    environment: str = "dev"
    testing: bool = bool(0)

    # API CONFIG
    project_name: str = "Record View API"
    api_v1_str: str = "/api/v1"
    backend_cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # DATA ACCESS CONFIG
    data_access_provider: str = "memory"
    identity_field: str = "Id"
    name_field: str = "Name"
    fetch_limit: int = Field(default=200, gt=0)

    # TABLE CONFIG
    default_page_size: int = Field(default=25, gt=0)
    page_size_options: List[int] = [10, 25, 50, 100, 200]
    search_debounce_ms: int = Field(default=400, ge=0)

    # LOOKUP CONFIG
    lookup_debounce_ms: int = Field(default=350, ge=0)
    lookup_max_results: int = Field(default=50, gt=0)
    lookup_blur_grace_ms: int = Field(default=200, ge=0)

    # AUTHENTICATION CONFIG
    auth_password: Optional[str] = None
    jwt_secret: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="RECORDVIEW_",
        env_file=["../.env", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("page_size_options")
    @classmethod
    def check_page_size_options(cls, value: List[int]) -> List[int]:
        """Page size options must be positive and are kept sorted."""
        if not value or any(size <= 0 for size in value):
            raise ValueError("page_size_options must be a non-empty list of positive sizes")
        return sorted(set(value))

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000

    @property
    def lookup_debounce_seconds(self) -> float:
        return self.lookup_debounce_ms / 1000

    @property
    def lookup_blur_grace_seconds(self) -> float:
        return self.lookup_blur_grace_ms / 1000


@lru_cache()
def get_settings() -> Settings:
    """Get the settings for the application."""
    logger.info("Loading config settings from the environment...")

    settings = Settings()

    if settings.auth_password and settings.jwt_secret:
        logger.info("Authentication is configured")
    else:
        logger.warning("Authentication password or JWT secret is not set, using defaults")

    logger.info(f"Data access provider: {settings.data_access_provider}")

    return settings
