"""
AWS Health API event source.

Wraps the Health DescribeEvents paginator and yields parsed event pages.
Transport and API failures surface as EventSourceError so callers can
degrade a single scrape instead of failing the process.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from health_exporter.core.models.config import APIConfig
from health_exporter.core.models.events import EventFilter, HealthEvent, parse_events

logger = structlog.get_logger(__name__)


class EventSourceError(Exception):
    """Raised when events cannot be retrieved from the source."""


class EventSource(ABC):
    """Paginated source of health events."""

    @abstractmethod
    def describe_events(self, event_filter: EventFilter) -> Iterator[List[HealthEvent]]:
        """Yield pages of events matching the filter, in source order."""
        pass


class AWSHealthEventSource(EventSource):
    """Event source backed by the boto3 `health` client."""

    def __init__(self, client, page_size: int = 10):
        self.client = client
        self.page_size = page_size

    @classmethod
    def from_config(cls, config: APIConfig) -> "AWSHealthEventSource":
        """Create a session and Health client. Errors here are fatal at startup."""
        session = boto3.session.Session(profile_name=config.profile, region_name=config.region)
        client = session.client("health", region_name=config.region)
        logger.info("AWS Health client created", region=config.region, page_size=config.page_size)
        return cls(client, page_size=config.page_size)

    def describe_events(self, event_filter: EventFilter) -> Iterator[List[HealthEvent]]:
        kwargs = {"PaginationConfig": {"PageSize": self.page_size}}
        api_filter = event_filter.to_api_filter()
        if api_filter:
            kwargs["filter"] = api_filter

        try:
            paginator = self.client.get_paginator("describe_events")
            for page in paginator.paginate(**kwargs):
                yield parse_events(page.get("events") or [])
        except (BotoCoreError, ClientError) as e:
            raise EventSourceError(f"DescribeEvents failed: {e}") from e
        except ValidationError as e:
            raise EventSourceError(f"Malformed event record: {e}") from e

