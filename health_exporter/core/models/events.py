"""
Health event data models.

These models define the structure of events returned by the AWS Health API
and the inclusion filter applied to them before aggregation.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Recognized event lifecycle states, one metric per state
STATUS_BUCKETS: Tuple[str, ...] = ("open", "upcoming", "closed")

# Metric label names, in label tuple order
LABEL_NAMES: Tuple[str, ...] = (
    "availability_zone",
    "event_type_category",
    "event_type_code",
    "region",
    "service",
)


class HealthEvent(BaseModel):
    """A single AWS Health event record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    arn: str = ""
    availability_zone: str = Field(default="", alias="availabilityZone")
    event_type_category: str = Field(default="", alias="eventTypeCategory")
    event_type_code: str = Field(default="", alias="eventTypeCode")
    region: str = ""
    service: str = ""
    status_code: str = Field(default="", alias="statusCode")
    event_scope_code: str = Field(default="", alias="eventScopeCode")
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")
    last_updated_time: Optional[datetime] = Field(default=None, alias="lastUpdatedTime")

    @field_validator(
        "arn", "availability_zone", "event_type_category", "event_type_code",
        "region", "service", "status_code", "event_scope_code",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    def label_values(self) -> Tuple[str, str, str, str, str]:
        """Project the event onto the metric labels (see LABEL_NAMES)."""
        return (
            self.availability_zone,
            self.event_type_category,
            self.event_type_code,
            self.region,
            self.service,
        )


def _clean(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(v.strip() for v in values if v and v.strip())


class EventFilter(BaseModel):
    """
    Inclusion filter over event dimensions.

    Dimensions are combined with AND, values within a dimension with OR.
    An empty dimension places no restriction on events.
    """

    model_config = ConfigDict(frozen=True)

    availability_zones: Tuple[str, ...] = ()
    event_type_categories: Tuple[str, ...] = ()
    event_type_codes: Tuple[str, ...] = ()
    regions: Tuple[str, ...] = ()
    services: Tuple[str, ...] = ()

    @classmethod
    def from_lists(
        cls,
        availability_zones: Optional[Iterable[str]] = None,
        event_type_categories: Optional[Iterable[str]] = None,
        event_type_codes: Optional[Iterable[str]] = None,
        regions: Optional[Iterable[str]] = None,
        services: Optional[Iterable[str]] = None,
    ) -> "EventFilter":
        """Build a filter from optional lists, dropping blank values."""
        return cls(
            availability_zones=_clean(availability_zones),
            event_type_categories=_clean(event_type_categories),
            event_type_codes=_clean(event_type_codes),
            regions=_clean(regions),
            services=_clean(services),
        )

    def is_empty(self) -> bool:
        return not any((
            self.availability_zones,
            self.event_type_categories,
            self.event_type_codes,
            self.regions,
            self.services,
        ))

    def matches(self, event: HealthEvent) -> bool:
        """Check whether an event passes every non-empty dimension."""
        checks = (
            (self.availability_zones, event.availability_zone),
            (self.event_type_categories, event.event_type_category),
            (self.event_type_codes, event.event_type_code),
            (self.regions, event.region),
            (self.services, event.service),
        )
        return all(not allowed or value in allowed for allowed, value in checks)

    def to_api_filter(self) -> dict:
        """Render the filter as the Health API DescribeEvents `filter` argument."""
        api_filter = {}
        for key, values in (
            ("availabilityZones", self.availability_zones),
            ("eventTypeCategories", self.event_type_categories),
            ("eventTypeCodes", self.event_type_codes),
            ("regions", self.regions),
            ("services", self.services),
        ):
            if values:
                api_filter[key] = list(values)
        return api_filter


def parse_events(records: List[dict]) -> List[HealthEvent]:
    """Parse raw API event records into models."""
    return [HealthEvent.model_validate(record) for record in records]
