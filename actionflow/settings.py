"""
Runtime settings for actionflow controllers.
Loaded from ACTIONFLOW_* environment variables and an optional .env file.
"""
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings; controllers read these through get_settings() unless given their own."""

    api_version: str = "v1"
    log_level: str = "INFO"
    log_errors: bool = True
    detailed_errors: bool = True

    turbo_enabled: bool = True
    flash_partial: str = "shared/flash"
    form_errors_partial: str = "shared/form_errors"
    flash_target: str = "flash"
    form_errors_target: str = "form_errors"
    flash_cookie: str = "actionflow_flash"
    flash_ttl_seconds: int = 300
    # flat i18n-style catalog: "flash.users.create.success" -> "User created"
    flash_messages: Dict[str, str] = Field(default_factory=dict)

    redis_url: Optional[str] = None
    database_url: str = "sqlite:///./actionflow.db"

    pagination_enabled: bool = True
    per_page: int = Field(default=25, ge=1)
    max_per_page: int = Field(default=100, ge=1)
    csv_filename: str = "export.csv"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ACTIONFLOW_")


_OVERRIDES: Dict[str, Any] = {}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(**_OVERRIDES)


def configure(**overrides: Any) -> Settings:
    """Replace the process-wide settings with overrides applied on top of env values."""
    _OVERRIDES.clear()
    _OVERRIDES.update(overrides)
    get_settings.cache_clear()
    return get_settings()


def reset_settings() -> Settings:
    return configure()
