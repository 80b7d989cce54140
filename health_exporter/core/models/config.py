"""
Exporter configuration.

Centralized configuration for the AWS Health exporter. Values come from
defaults, then environment variables, then command-line flags.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from health_exporter.core.models.events import EventFilter

# The AWS Health API is only served from this region
DEFAULT_API_REGION = "us-east-1"


def _split_env(name: str) -> Optional[List[str]]:
    raw = os.getenv(name)
    if not raw:
        return None
    return [value.strip() for value in raw.split(",") if value.strip()]


class APIConfig(BaseModel):
    """AWS Health API client configuration."""

    model_config = ConfigDict(validate_assignment=True)

    region: str = Field(default=DEFAULT_API_REGION, description="Region of the Health API endpoint")
    page_size: int = Field(default=10, ge=10, le=100, description="Events requested per API page")
    profile: Optional[str] = Field(default=None, description="AWS shared config profile")


class FilterConfig(BaseModel):
    """Per-dimension inclusion lists. Empty lists place no restriction."""

    model_config = ConfigDict(validate_assignment=True)

    availability_zones: List[str] = Field(default_factory=list, description="Availability zones to include")
    event_type_categories: List[str] = Field(default_factory=list, description="Event type categories to include")
    event_type_codes: List[str] = Field(default_factory=list, description="Event type codes to include")
    regions: List[str] = Field(default_factory=list, description="Regions to include")
    services: List[str] = Field(default_factory=list, description="Services to include")


class WebConfig(BaseModel):
    """HTTP server configuration."""

    model_config = ConfigDict(validate_assignment=True)

    listen_address: str = Field(default=":9229", description="Address to listen on for HTTP requests")
    metrics_path: str = Field(default="/metrics", description="Path under which to expose metrics")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(validate_assignment=True)

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or console")


class ExporterConfig(BaseModel):
    """Complete exporter configuration."""

    api: APIConfig = Field(default_factory=APIConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "ExporterConfig":
        """Load configuration from environment variables."""
        config = cls()

        # API configuration
        if os.getenv("AWS_HEALTH_API_REGION"):
            config.api.region = os.getenv("AWS_HEALTH_API_REGION")
        if os.getenv("AWS_HEALTH_API_PAGE_SIZE"):
            config.api.page_size = int(os.getenv("AWS_HEALTH_API_PAGE_SIZE"))
        if os.getenv("AWS_PROFILE"):
            config.api.profile = os.getenv("AWS_PROFILE")

        # Filter configuration
        for env_name, attr in (
            ("AWS_HEALTH_FILTER_AVAILABILITY_ZONES", "availability_zones"),
            ("AWS_HEALTH_FILTER_EVENT_TYPE_CATEGORIES", "event_type_categories"),
            ("AWS_HEALTH_FILTER_EVENT_TYPE_CODES", "event_type_codes"),
            ("AWS_HEALTH_FILTER_REGIONS", "regions"),
            ("AWS_HEALTH_FILTER_SERVICES", "services"),
        ):
            values = _split_env(env_name)
            if values:
                setattr(config.filter, attr, values)

        # Web configuration
        if os.getenv("AWS_HEALTH_LISTEN_ADDRESS"):
            config.web.listen_address = os.getenv("AWS_HEALTH_LISTEN_ADDRESS")
        if os.getenv("AWS_HEALTH_METRICS_PATH"):
            config.web.metrics_path = os.getenv("AWS_HEALTH_METRICS_PATH")

        # Logging configuration
        if os.getenv("LOG_LEVEL"):
            config.logging.level = os.getenv("LOG_LEVEL")
        if os.getenv("LOG_FORMAT"):
            config.logging.format = os.getenv("LOG_FORMAT")

        return config

    def build_filter(self) -> EventFilter:
        """Build the immutable event filter used for every scrape."""
        return EventFilter.from_lists(
            availability_zones=self.filter.availability_zones,
            event_type_categories=self.filter.event_type_categories,
            event_type_codes=self.filter.event_type_codes,
            regions=self.filter.regions,
            services=self.filter.services,
        )
