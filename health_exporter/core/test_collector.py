"""Tests for the Prometheus health event collector."""

import threading
import time
from typing import Iterator, List

from prometheus_client import generate_latest

from health_exporter.core.aggregator import HealthEventAggregator
from health_exporter.core.collector import HealthEventCollector, build_registry
from health_exporter.core.models.events import EventFilter, HealthEvent
from health_exporter.core.sources.health_api import EventSource, EventSourceError


class MockHealthSource(EventSource):
    """Mock event source whose events can be swapped between scrapes."""

    def __init__(self, events: List[HealthEvent], delay: float = 0.0):
        self.events = events
        self.delay = delay
        self.error = None
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def describe_events(self, event_filter: EventFilter) -> Iterator[List[HealthEvent]]:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.error:
                raise EventSourceError(self.error)
            yield list(self.events)
        finally:
            with self._guard:
                self.active -= 1


def make_event(status_code, region="us-east-1", service="EC2"):
    return HealthEvent(
        event_type_category="issue",
        event_type_code=f"AWS_{service}_OPERATIONAL_ISSUE",
        region=region,
        service=service,
        status_code=status_code,
    )


def labels(region="us-east-1", service="EC2"):
    return {
        "availability_zone": "",
        "event_type_category": "issue",
        "event_type_code": f"AWS_{service}_OPERATIONAL_ISSUE",
        "region": region,
        "service": service,
    }


def make_registry(source):
    collector = HealthEventCollector(HealthEventAggregator(source))
    return collector, build_registry(collector, version="1.2.3")


def test_collect_exposes_counters_per_bucket():
    source = MockHealthSource([
        make_event("open", region="eu-west-1"),
        make_event("open"),
        make_event("closed", service="LAMBDA"),
        make_event("closed", service="LAMBDA"),
    ])
    _, registry = make_registry(source)

    assert registry.get_sample_value("aws_health_closed_total", labels(service="LAMBDA")) == 2.0
    assert registry.get_sample_value("aws_health_open_total", labels()) == 1.0
    assert registry.get_sample_value("aws_health_open_total", labels(region="eu-west-1")) == 1.0
    assert registry.get_sample_value("aws_health_upcoming_total", labels()) is None
    assert registry.get_sample_value("aws_health_scrape_success") == 1.0


def test_collect_resets_series_between_scrapes():
    source = MockHealthSource([make_event("open", region="eu-west-1")])
    _, registry = make_registry(source)
    assert registry.get_sample_value("aws_health_open_total", labels(region="eu-west-1")) == 1.0

    source.events = [make_event("closed"), make_event("closed")]

    assert registry.get_sample_value("aws_health_open_total", labels(region="eu-west-1")) is None
    assert registry.get_sample_value("aws_health_closed_total", labels()) == 2.0


def test_repeated_collects_do_not_double_count():
    source = MockHealthSource([make_event("upcoming")])
    collector, registry = make_registry(source)

    for _ in range(3):
        generate_latest(registry)

    assert registry.get_sample_value("aws_health_upcoming_total", labels()) == 1.0
    assert collector.last_result.fetched == 1


def test_fetch_failure_clears_counters():
    source = MockHealthSource([make_event("open")])
    _, registry = make_registry(source)
    assert registry.get_sample_value("aws_health_open_total", labels()) == 1.0

    source.error = "connection reset by peer"

    assert registry.get_sample_value("aws_health_open_total", labels()) is None
    assert registry.get_sample_value("aws_health_scrape_success") == 0.0


def test_build_info_is_exposed():
    _, registry = make_registry(MockHealthSource([]))

    output = generate_latest(registry).decode()

    assert 'aws_health_exporter_build_info{' in output
    assert 'version="1.2.3"' in output
    assert "# TYPE aws_health_open counter" in output


def test_concurrent_collects_are_serialized():
    events = [make_event("open") for _ in range(3)]
    source = MockHealthSource(events, delay=0.02)
    _, registry = make_registry(source)
    outputs = []

    def scrape():
        outputs.append(generate_latest(registry).decode())

    threads = [threading.Thread(target=scrape) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert source.max_active == 1
    assert len(outputs) == 6
    series = 'aws_health_open_total{availability_zone="",event_type_category="issue",' \
             'event_type_code="AWS_EC2_OPERATIONAL_ISSUE",region="us-east-1",service="EC2"} 3.0'
    for output in outputs:
        assert series in output


class FlakyHealthSource(MockHealthSource):
    """Mock source that drops the connection once switched to failing."""

    def __init__(self, events: List[HealthEvent]):
        super().__init__(events)
        self.failing = False

    def describe_events(self, event_filter: EventFilter) -> Iterator[List[HealthEvent]]:
        if self.failing:
            raise ConnectionResetError("peer reset")
        yield list(self.events)


def test_unexpected_source_error_degrades_scrape():
    source = FlakyHealthSource([make_event("open")])
    _, registry = make_registry(source)
    assert registry.get_sample_value("aws_health_open_total", labels()) == 1.0
    assert registry.get_sample_value("aws_health_scrape_success") == 1.0

    source.failing = True
    output = generate_latest(registry).decode()

    assert "aws_health_open_total{" not in output
    assert registry.get_sample_value("aws_health_open_total", labels()) is None
    assert registry.get_sample_value("aws_health_scrape_success") == 0.0
