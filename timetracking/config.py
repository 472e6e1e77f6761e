# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Application configuration loaded from the environment."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings, overridable via ``TIMETRACKING_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="TIMETRACKING_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = "sqlite:///./timetracking.db"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Calendar dates of time entries are derived in this timezone
    timezone: str = "Europe/Berlin"

    holiday_country: str = "DE"
    holiday_subdivision: str = Field(default="NW", description="Federal state code")

    # Role value in the X-User-Role header that grants admin access
    admin_role: str = "admin"
    user_display_names: dict[str, str] = Field(default_factory=dict)


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


settings = get_settings()
