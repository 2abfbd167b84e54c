"""
Configuration settings for the sports data aggregation layer.
Uses pydantic-settings for validation and environment variable loading.
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderCredentials(BaseSettings):
    """
    API keys for the upstream sports-data providers.

    Each provider family reads its own variable and falls back to the
    shared API_SPORTS_KEY when that variable is empty.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_sports_key: str = Field(
        default="",
        validation_alias=AliasChoices("API_SPORTS_KEY", "SPORTSDATA_API_KEY", "api_sports_key"),
        description="Shared default credential for every API-Sports family",
    )

    # Per-family overrides
    football_api_key: str = ""
    basketball_api_key: str = ""
    baseball_api_key: str = ""
    hockey_api_key: str = ""
    cricket_api_key: str = ""
    tennis_api_key: str = ""
    boxing_api_key: str = ""
    mma_api_key: str = ""
    formula1_api_key: str = ""

    def credential_for(self, env_name: Optional[str]) -> str:
        """Get the key for a provider family, falling back to the shared key."""
        if env_name:
            specific = getattr(self, env_name.lower(), "")
            if specific:
                return specific
        return self.api_sports_key


class ResilienceSettings(BaseSettings):
    """Retry and fallback behaviour for upstream requests."""

    max_retries: int = 3  # 4 attempts per domain
    retry_delay_base_seconds: float = 1.0
    request_timeout_seconds: float = 15.0

    @field_validator("max_retries")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)


class CacheSettings(BaseSettings):
    """Freshness windows for the response cache."""

    model_config = SettingsConfigDict(env_prefix="SPORTS_CACHE_")

    # Bump to invalidate every cached payload after a format change
    version: str = "v4"

    default_ttl_seconds: float = Field(
        default=300.0,
        validation_alias=AliasChoices("SPORTS_CACHE_TTL", "default_ttl_seconds"),
    )
    # Unset windows follow default_ttl_seconds; live never exceeds it
    live_ttl_seconds: float = 60.0
    upcoming_ttl_seconds: Optional[float] = None
    reference_ttl_seconds: float = 1800.0  # sport lists, odds by event

    @property
    def live_window_seconds(self) -> float:
        return min(self.live_ttl_seconds, self.default_ttl_seconds)

    @property
    def upcoming_window_seconds(self) -> float:
        if self.upcoming_ttl_seconds is None:
            return self.default_ttl_seconds
        return self.upcoming_ttl_seconds


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    log_level: str = "INFO"
    log_json: bool = False

    # Upcoming query window
    upcoming_window_days: int = 7
    upcoming_next_fixtures: int = 20

    # Sub-settings
    credentials: ProviderCredentials = Field(default_factory=ProviderCredentials)
    resilience: ResilienceSettings = Field(default_factory=ResilienceSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("upcoming_window_days")
    @classmethod
    def _clamp_window(cls, value: int) -> int:
        return min(30, max(1, value))


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the settings singleton."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
