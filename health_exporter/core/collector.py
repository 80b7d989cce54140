"""
Prometheus collector for AWS Health events.

Every collect call runs one complete reset, fetch, refill and render cycle
under a single lock. Concurrent scrapes queue on the lock, so no scrape can
observe counters that another scrape has cleared but not yet refilled.
"""

import threading
from typing import List, Optional

import structlog
from prometheus_client import CollectorRegistry
from prometheus_client.metrics_core import Metric

from health_exporter import __version__
from health_exporter.core.aggregator import HealthEventAggregator, ScrapeResult
from health_exporter.core.utils.metrics import (
    build_scrape_gauges,
    build_status_counters,
    register_build_info,
)

logger = structlog.get_logger(__name__)


class HealthEventCollector:
    """Custom collector exposing per-status event counters."""

    def __init__(self, aggregator: HealthEventAggregator):
        self.aggregator = aggregator
        self.counters = build_status_counters()
        self.scrape_gauges = build_scrape_gauges()
        self.last_result: Optional[ScrapeResult] = None
        self._lock = threading.Lock()

    def _metrics(self):
        return list(self.counters.values()) + list(self.scrape_gauges.values())

    def describe(self) -> List[Metric]:
        descriptions = []
        for metric in self._metrics():
            descriptions.extend(metric.describe())
        return descriptions

    def _reset(self) -> None:
        for counter in self.counters.values():
            counter.clear()

    def _refill(self, result: ScrapeResult) -> None:
        for (bucket, labels), count in result.counts.items():
            self.counters[bucket].labels(*labels).inc(count)
        self.scrape_gauges["success"].set(1 if result.success else 0)
        self.scrape_gauges["duration"].set(result.duration_seconds)

    def collect(self) -> List[Metric]:
        with self._lock:
            self._reset()
            result = self.aggregator.scrape()
            self._refill(result)
            self.last_result = result
            # Render while still holding the lock
            samples = [family for metric in self._metrics() for family in metric.collect()]

        logger.debug(
            "Collected health events",
            fetched=result.fetched,
            series=len(result.counts),
            unrecognized=result.unrecognized,
            success=result.success,
            duration_seconds=round(result.duration_seconds, 4),
        )
        return samples


def build_registry(collector: HealthEventCollector, version: str = __version__) -> CollectorRegistry:
    """Create a dedicated registry holding the collector and build info."""
    registry = CollectorRegistry()
    registry.register(collector)
    register_build_info(registry, version)
    return registry
