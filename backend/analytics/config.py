"""Analytics configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """Market-structure defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Volume profile
    profile_levels: int = Field(default=50, ge=1)
    value_area_pct: float = Field(default=0.70, gt=0, le=1)
    vwap_band_multiplier: float = Field(default=2.0, ge=0)


@lru_cache
def get_analytics_settings() -> AnalyticsSettings:
    """Get cached analytics settings instance."""
    return AnalyticsSettings()
