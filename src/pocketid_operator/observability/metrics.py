"""
Prometheus metrics for the Pocket ID operator.

This module provides metrics collection for reconciliation outcomes,
retry state and Pocket ID API failures, plus a small HTTP server that
exposes them together with health endpoints.
"""

import logging
import time
from contextlib import asynccontextmanager

# aiohttp is provided by kopf; the server mirrors kopf's own HTTP stack.
from aiohttp.web import Application, AppRunner, Request, Response, TCPSite
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# Dedicated registry so tests and the metrics endpoint see only operator metrics
METRICS_REGISTRY = CollectorRegistry()

RECONCILIATION_TOTAL = Counter(
    "pocketid_operator_reconciliation_total",
    "Total number of reconciliation attempts",
    ["namespace", "result"],
    registry=METRICS_REGISTRY,
)

RECONCILIATION_DURATION = Histogram(
    "pocketid_operator_reconciliation_duration_seconds",
    "Time spent on reconciliation operations",
    ["operation"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=METRICS_REGISTRY,
)

RECONCILIATION_SKIPPED_TOTAL = Counter(
    "pocketid_operator_reconciliation_skipped_total",
    "Total number of reconciliation triggers dropped by a gate",
    ["namespace", "reason"],
    registry=METRICS_REGISTRY,
)

RETRY_ATTEMPTS = Gauge(
    "pocketid_operator_retry_attempts",
    "Current retry counter per PocketIDClient",
    ["namespace", "name"],
    registry=METRICS_REGISTRY,
)

POCKETID_API_ERRORS = Counter(
    "pocketid_operator_pocketid_api_errors_total",
    "Total number of failed Pocket ID API requests",
    ["operation"],
    registry=METRICS_REGISTRY,
)


class MetricsCollector:
    """Collects and manages metrics for the Pocket ID operator."""

    def __init__(self, registry: CollectorRegistry = METRICS_REGISTRY):
        self.registry = registry

    @asynccontextmanager
    async def track_reconciliation(self, namespace: str, operation: str = "reconcile"):
        """
        Context manager to track reconciliation operations.

        The body reports its own outcome through the yielded dict
        (``outcome["result"]``) because the reconciler records failures on
        the resource instead of raising them.
        """
        start_time = time.time()
        outcome = {"result": "success"}

        try:
            yield outcome
        except Exception:
            outcome["result"] = "error"
            raise
        finally:
            RECONCILIATION_TOTAL.labels(
                namespace=namespace, result=outcome["result"]
            ).inc()
            RECONCILIATION_DURATION.labels(operation=operation).observe(
                time.time() - start_time
            )

    def record_skip(self, namespace: str, reason: str) -> None:
        RECONCILIATION_SKIPPED_TOTAL.labels(namespace=namespace, reason=reason).inc()

    def set_retry_attempt(self, namespace: str, name: str, attempt: int) -> None:
        RETRY_ATTEMPTS.labels(namespace=namespace, name=name).set(attempt)

    def record_api_error(self, operation: str) -> None:
        POCKETID_API_ERRORS.labels(operation=operation).inc()

    def forget_resource(self, namespace: str, name: str) -> None:
        """Drop per-resource series once the resource is gone."""
        try:
            RETRY_ATTEMPTS.remove(namespace, name)
        except KeyError:
            pass


# Global metrics collector instance
metrics_collector = MetricsCollector()


class MetricsServer:
    """HTTP server for exposing Prometheus metrics and health probes."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        """
        Initialize metrics server.

        Args:
            port: Port to serve metrics on
            host: Host interface to bind to
        """
        self.port = port
        self.host = host
        self.ready = False
        self.app = Application()
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_get("/metrics", self._metrics_handler)
        self.app.router.add_get("/healthz", self._healthz_handler)
        self.app.router.add_get("/ready", self._ready_handler)

    async def _metrics_handler(self, request: Request) -> Response:
        """Handle /metrics endpoint for Prometheus scraping."""
        try:
            metrics_data = generate_latest(METRICS_REGISTRY)
        except Exception as e:
            logger.error(f"Failed to generate metrics: {e}")
            return Response(
                text=f"Error generating metrics: {type(e).__name__}. Check logs for details.",
                status=500,
            )
        return Response(body=metrics_data, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def _healthz_handler(self, request: Request) -> Response:
        """Liveness: the server is running."""
        return Response(text="ok")

    async def _ready_handler(self, request: Request) -> Response:
        """Readiness: operator startup has completed."""
        if self.ready:
            return Response(text="ready")
        return Response(text="not ready", status=503)

    async def start(self) -> None:
        """Start the metrics server."""
        self.runner = AppRunner(self.app)
        await self.runner.setup()

        self.site = TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        logger.info(f"Metrics server started on {self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the metrics server."""
        if self.site:
            await self.site.stop()
            self.site = None

        if self.runner:
            await self.runner.cleanup()
            self.runner = None

        logger.info("Metrics server stopped")
