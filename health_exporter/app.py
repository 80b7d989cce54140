"""
FastAPI application serving AWS Health metrics.

Exposes the Prometheus metrics endpoint, a landing page linking to it and a
liveness endpoint.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from health_exporter import __version__
from health_exporter.core.models.config import ExporterConfig

logger = structlog.get_logger(__name__)

LANDING_PAGE = """<html>
<head><title>AWS Health Exporter</title></head>
<body>
<h1>AWS Health Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>"""


def create_app(registry: CollectorRegistry, config: ExporterConfig) -> FastAPI:
    """Build the HTTP application around a metrics registry."""
    metrics_path = config.web.metrics_path

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Serving metrics", listen_address=config.web.listen_address, metrics_path=metrics_path)
        try:
            yield
        finally:
            logger.info("Shutting down AWS Health exporter")

    app = FastAPI(
        title="AWS Health Exporter",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )

    # Sync handler: FastAPI runs it in its thread pool, the collector lock
    # serializes concurrent scrapes.
    @app.get(metrics_path)
    def metrics():
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", response_class=HTMLResponse)
    async def root():
        return LANDING_PAGE.format(metrics_path=metrics_path)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": __version__}

    return app
