"""
Centralized configuration for the telemetry engine.

All settings are loaded from environment variables with sensible defaults.
The analytics surface is deliberately small: the vendor identifiers
(measurement id, container id) and the environment/debug/disabled flags.
"""

import re
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import AnalyticsEnvironment


MEASUREMENT_ID_PATTERN = re.compile(r"^G-[A-Z0-9]{4,}$")
CONTAINER_ID_PATTERN = re.compile(r"^GTM-[A-Z0-9]{4,}$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ANALYTICS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Carpool Telemetry"
    app_version: str = "0.1.0"

    # Vendor identifiers
    ga4_measurement_id: str = ""
    gtm_container_id: str = ""

    # Behaviour flags
    environment: AnalyticsEnvironment = AnalyticsEnvironment.DEVELOPMENT
    debug: bool = False
    disabled: bool = False

    # Persistent client storage (JSON file); empty keeps identifiers in memory
    storage_path: str = ""

    # Debug console server
    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False

    @property
    def is_production(self) -> bool:
        """Whether events should be treated as real (non-internal) traffic."""
        return self.environment == AnalyticsEnvironment.PRODUCTION

    def validate_analytics(self) -> list[str]:
        """
        Check the analytics configuration for problems.

        Configuration problems never raise; the engine degrades to a
        data-layer-only mode and these warnings are logged in debug mode.

        Returns:
            List of human-readable warnings (empty when configuration is sound)
        """
        warnings: list[str] = []

        if not self.ga4_measurement_id:
            warnings.append("ANALYTICS_GA4_MEASUREMENT_ID is not set; GA4 delivery is disabled")
        elif not MEASUREMENT_ID_PATTERN.match(self.ga4_measurement_id):
            warnings.append(
                f"GA4 measurement id '{self.ga4_measurement_id}' does not look like G-XXXXXXXXXX"
            )

        if self.gtm_container_id and not CONTAINER_ID_PATTERN.match(self.gtm_container_id):
            warnings.append(
                f"GTM container id '{self.gtm_container_id}' does not look like GTM-XXXXXXX"
            )

        if self.is_production and self.debug:
            warnings.append("Debug mode is enabled in production")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
