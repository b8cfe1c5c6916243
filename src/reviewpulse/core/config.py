"""Configuration management for ReviewPulse."""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ErrorConstants, FileConstants, AnalyticsConstants
from .models import Platform

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Review source APIs
    google_maps_api_key: str = Field("", description="Google Places API key")
    yelp_api_key: str = Field("", description="Yelp Fusion API key")
    trustpilot_api_key: str = Field("", description="Trustpilot API key")

    google_maps_enabled: bool = Field(True, description="Query Google Maps during aggregation")
    yelp_enabled: bool = Field(True, description="Query Yelp during aggregation")
    trustpilot_enabled: bool = Field(True, description="Query Trustpilot during aggregation")

    # OpenAI API
    openai_api_key: str = Field("", description="OpenAI API key")
    OPENAI_API_KEY: str = Field("", description="OpenAI API key (alternative naming)")
    openai_model: str = Field("gpt-4o-mini", description="Model used for review classification")

    @property
    def effective_openai_key(self) -> str:
        """Get the effective OpenAI API key from either field."""
        return self.openai_api_key or self.OPENAI_API_KEY

    # Storage
    database_url: str = Field(FileConstants.DATABASE_URL, description="SQLAlchemy database URL")
    cache_dir: str = Field(FileConstants.CACHE_DIR, description="Classifier cache directory ('' disables)")
    sources_file: str = Field(FileConstants.SOURCES_FILE, description="Optional per-source YAML overrides")

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    # Timeouts and retries
    source_timeout: float = Field(ErrorConstants.SOURCE_TIMEOUT, description="Seconds per source HTTP call")
    aggregation_timeout: float = Field(ErrorConstants.AGGREGATION_TIMEOUT, description="Seconds per aggregation pass")
    classifier_timeout: float = Field(ErrorConstants.CLASSIFIER_TIMEOUT, description="Seconds per classifier call")
    max_retries: int = Field(ErrorConstants.MAX_RETRY_ATTEMPTS, description="Maximum retry attempts")
    retry_delay: float = Field(ErrorConstants.RETRY_BASE_DELAY, description="Base retry delay in seconds")
    retry_backoff: float = Field(2.0, description="Exponential backoff base applied to retry_delay")

    # Analytics
    default_days: int = Field(AnalyticsConstants.DEFAULT_DAYS, description="Default analytics window in days")


@dataclass(frozen=True)
class SourceConfig:
    """Explicit per-adapter configuration handed to the aggregator."""
    platform: Platform
    enabled: bool
    api_key: str
    timeout: float

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.api_key)


_SOURCE_FIELDS = {
    Platform.GOOGLE_MAPS: ("google_maps_enabled", "google_maps_api_key"),
    Platform.YELP: ("yelp_enabled", "yelp_api_key"),
    Platform.TRUSTPILOT: ("trustpilot_enabled", "trustpilot_api_key"),
}


def _load_source_overrides(path: Optional[str]) -> Dict[str, dict]:
    """Load per-source overrides from YAML, keyed by platform value."""
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load source overrides from {path}: {e}. Using defaults.")
        return {}
    sources = data.get("sources") or {}
    if not isinstance(sources, dict):
        logger.warning(f"Ignoring malformed 'sources' section in {path}")
        return {}
    return {str(k).upper(): v for k, v in sources.items() if isinstance(v, dict)}


def load_source_configs(settings: "Settings") -> Dict[Platform, SourceConfig]:
    """Build one SourceConfig per supported platform from settings and the YAML overrides."""
    overrides = _load_source_overrides(settings.sources_file)
    configs = {}
    for platform, (enabled_field, key_field) in _SOURCE_FIELDS.items():
        override = overrides.get(platform.value, {})
        configs[platform] = SourceConfig(
            platform=platform,
            # YAML can switch a source off but never re-enable one disabled in settings
            enabled=bool(getattr(settings, enabled_field)) and bool(override.get("enabled", True)),
            api_key=getattr(settings, key_field),
            timeout=float(override.get("timeout", settings.source_timeout)),
        )
    return configs


# Global settings instance
settings = Settings()
