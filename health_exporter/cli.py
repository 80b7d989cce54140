#!/usr/bin/env python3
"""
Command-line entry point for the AWS Health exporter.

Builds the configuration, the Health API event source and the metrics
registry once at startup, then serves them over HTTP with uvicorn.
"""

import logging
import platform
import sys
from typing import List, Optional, Tuple

import click
import structlog
import uvicorn

from health_exporter import __version__
from health_exporter.app import create_app
from health_exporter.core.aggregator import HealthEventAggregator
from health_exporter.core.collector import HealthEventCollector, build_registry
from health_exporter.core.models.config import ExporterConfig
from health_exporter.core.sources.health_api import AWSHealthEventSource

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Configure stdlib logging and structlog."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(log_level)

    renderer = structlog.dev.ConsoleRenderer() if log_format == "console" else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split `host:port`, `:port` or `[ipv6]:port` into host and port."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {address!r}, expected host:port")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"invalid port {port_number} in listen address {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


def _split_values(ctx, param, values) -> List[str]:
    """Flatten repeated and comma-separated option values."""
    return [v.strip() for value in values for v in value.split(",") if v.strip()]


def _validate_listen_address(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parse_listen_address(value)
    except ValueError as e:
        raise click.BadParameter(str(e))
    return value


@click.command(name="aws-health-exporter")
@click.option("--web.listen-address", "listen_address", default=None, callback=_validate_listen_address,
              help="The address to listen on for HTTP requests. [default: :9229]")
@click.option("--web.telemetry-path", "metrics_path", default=None,
              help="Path under which to expose metrics. [default: /metrics]")
@click.option("--api.region", "api_region", default=None,
              help="Region of the AWS Health API endpoint. [default: us-east-1]")
@click.option("--api.page-size", "page_size", default=None, type=click.IntRange(10, 100),
              help="Events requested per DescribeEvents page. [default: 10]")
@click.option("--filter.availability-zone", "availability_zones", multiple=True, callback=_split_values,
              help="Only count events in these availability zones (repeatable, comma-separated).")
@click.option("--filter.event-type-category", "event_type_categories", multiple=True, callback=_split_values,
              help="Only count events of these categories, e.g. issue, scheduledChange.")
@click.option("--filter.event-type-code", "event_type_codes", multiple=True, callback=_split_values,
              help="Only count events with these event type codes.")
@click.option("--filter.region", "regions", multiple=True, callback=_split_values,
              help="Only count events in these regions.")
@click.option("--filter.service", "services", multiple=True, callback=_split_values,
              help="Only count events for these services, e.g. EC2.")
@click.option("--log.level", "log_level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Log level. [default: INFO]")
@click.option("--log.format", "log_format", default=None, type=click.Choice(["json", "console"]),
              help="Log output format. [default: json]")
@click.version_option(
    __version__, "--version",
    prog_name="aws_health_exporter",
    message=f"%(prog)s, version %(version)s (python {platform.python_version()})",
    help="Print version information and exit.",
)
def main(listen_address, metrics_path, api_region, page_size, availability_zones,
         event_type_categories, event_type_codes, regions, services, log_level, log_format):
    """Prometheus exporter for AWS Health events."""
    try:
        config = ExporterConfig.from_env()
    except ValueError as e:
        logger.error("Invalid configuration in environment", error=str(e))
        sys.exit(1)

    if listen_address is not None:
        config.web.listen_address = listen_address
    if metrics_path is not None:
        config.web.metrics_path = metrics_path
    if api_region is not None:
        config.api.region = api_region
    if page_size is not None:
        config.api.page_size = page_size
    for attr, values in (
        ("availability_zones", availability_zones),
        ("event_type_categories", event_type_categories),
        ("event_type_codes", event_type_codes),
        ("regions", regions),
        ("services", services),
    ):
        if values:
            setattr(config.filter, attr, values)
    if log_level is not None:
        config.logging.level = log_level
    if log_format is not None:
        config.logging.format = log_format

    configure_logging(config.logging.level, config.logging.format)

    try:
        host, port = parse_listen_address(config.web.listen_address)
    except ValueError as e:
        logger.error("Invalid listen address", error=str(e))
        sys.exit(1)

    event_filter = config.build_filter()
    if event_filter.is_empty():
        logger.info("Starting AWS Health exporter", version=__version__, filter="none")
    else:
        logger.info("Starting AWS Health exporter", version=__version__, filter=event_filter.to_api_filter())

    try:
        source = AWSHealthEventSource.from_config(config.api)
    except Exception as e:
        logger.error("Failed to create AWS Health API session", error=str(e))
        sys.exit(1)

    aggregator = HealthEventAggregator(source, event_filter)
    registry = build_registry(HealthEventCollector(aggregator))
    app = create_app(registry, config)

    logger.info("Listening", host=host, port=port)
    uvicorn.run(app, host=host, port=port, log_level=config.logging.level.lower())


if __name__ == "__main__":
    main()
