"""
Prometheus metric definitions for the health exporter.

Metrics are created unregistered and owned by the collector, so each
collector instance has its own counter state.
"""

import platform
from typing import Dict

from prometheus_client import CollectorRegistry, Counter, Gauge, Info

from health_exporter.core.models.events import LABEL_NAMES, STATUS_BUCKETS

NAMESPACE = "aws_health"


def build_status_counters() -> Dict[str, Counter]:
    """One counter vector per status bucket, e.g. aws_health_open_total."""
    return {
        bucket: Counter(
            bucket,
            f"Counter for {bucket} events",
            list(LABEL_NAMES),
            namespace=NAMESPACE,
            registry=None,
        )
        for bucket in STATUS_BUCKETS
    }


def build_scrape_gauges() -> Dict[str, Gauge]:
    return {
        "success": Gauge(
            "scrape_success",
            "Whether the last describe events call succeeded (1) or failed (0)",
            namespace=NAMESPACE,
            registry=None,
        ),
        "duration": Gauge(
            "scrape_duration_seconds",
            "Duration of the last fetch and classify cycle",
            namespace=NAMESPACE,
            registry=None,
        ),
    }


def register_build_info(registry: CollectorRegistry, version: str) -> Info:
    """Expose static build metadata as aws_health_exporter_build_info."""
    build_info = Info(
        "aws_health_exporter_build",
        "AWS Health exporter build information",
        registry=registry,
    )
    build_info.info({
        "version": version,
        "python_version": platform.python_version(),
    })
    return build_info
