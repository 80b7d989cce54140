"""
Health event aggregation.

Fetches every page of events for a filter, classifies each event into a
status bucket and counts events per (bucket, label tuple).
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from health_exporter.core.models.events import STATUS_BUCKETS, EventFilter, HealthEvent
from health_exporter.core.sources.health_api import EventSource, EventSourceError

logger = structlog.get_logger(__name__)

LabelTuple = Tuple[str, ...]


@dataclass
class ScrapeResult:
    """Outcome of one fetch-and-classify pass."""

    counts: Counter = field(default_factory=Counter)
    fetched: int = 0
    filtered_out: int = 0
    unrecognized: int = 0
    success: bool = True
    duration_seconds: float = 0.0

    def value(self, bucket: str, labels: LabelTuple) -> int:
        return self.counts.get((bucket, labels), 0)


class HealthEventAggregator:
    """Turns health events from a source into per-bucket, per-label counts."""

    def __init__(self, source: EventSource, event_filter: Optional[EventFilter] = None):
        self.source = source
        self.event_filter = event_filter or EventFilter()

    def fetch(self, event_filter: Optional[EventFilter] = None) -> Tuple[List[HealthEvent], bool]:
        """
        Fetch all pages of events matching the filter.

        Returns the events in source order and whether the fetch succeeded.
        A failed fetch yields no events at all, never a partial page set.
        """
        if event_filter is None:
            event_filter = self.event_filter
        events: List[HealthEvent] = []
        try:
            for page in self.source.describe_events(event_filter):
                events.extend(page)
        except EventSourceError as e:
            logger.error("Failed to describe health events", error=str(e))
            return [], False
        except Exception as e:
            logger.error("Unexpected error while fetching health events",
                         error=str(e), error_type=type(e).__name__)
            return [], False

        logger.debug("Fetched health events", count=len(events))
        return events, True

    def scrape(self, event_filter: Optional[EventFilter] = None) -> ScrapeResult:
        """Fetch events and count them by status bucket and label tuple."""
        if event_filter is None:
            event_filter = self.event_filter
        start_time = time.perf_counter()

        events, success = self.fetch(event_filter)
        result = ScrapeResult(fetched=len(events), success=success)

        for event in events:
            if not event_filter.matches(event):
                result.filtered_out += 1
                continue

            if event.status_code not in STATUS_BUCKETS:
                result.unrecognized += 1
                logger.warning(
                    "Skipping event with unrecognized status code",
                    status_code=event.status_code,
                    arn=event.arn,
                )
                continue

            result.counts[(event.status_code, event.label_values())] += 1

        result.duration_seconds = time.perf_counter() - start_time
        return result
