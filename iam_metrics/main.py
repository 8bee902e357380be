"""FastAPI application hosting the identity event metrics recorder."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from iam_metrics.config import Settings, get_settings
from iam_metrics.events import Aggregator, MetricEventRecorder, RealmNameCache, router as events_router
from iam_metrics.events import catalog
from iam_metrics.lib.logger import configure_logging, get_logger
from iam_metrics.lib.metrics import InMemoryMetricsRegistry, MetricsRegistry
from iam_metrics.lib.prometheus import PrometheusMetricsRegistry
from iam_metrics.lib.realm_client import KeycloakRealmClient, RealmLookup, StaticRealmLookup

logger = get_logger(__name__)


def build_registry(settings: Settings) -> MetricsRegistry:
    if settings.metrics_backend == "prometheus":
        return PrometheusMetricsRegistry(catalog.COUNTERS)
    return InMemoryMetricsRegistry()


def build_realm_lookup(settings: Settings) -> RealmLookup:
    if settings.realm_lookup == "keycloak":
        return KeycloakRealmClient(
            settings.keycloak_base_url,
            token=settings.keycloak_admin_token,
            timeout=settings.keycloak_timeout_seconds,
        )
    return StaticRealmLookup(settings.realm_names)


def build_recorder(settings: Settings) -> MetricEventRecorder:
    """Wire registry, aggregator, realm cache and recorder from settings."""

    aggregator = Aggregator(build_registry(settings))
    realms = RealmNameCache(build_realm_lookup(settings))
    return MetricEventRecorder(aggregator, realms, on_realm_failure=settings.realm_lookup_failure)


settings = get_settings()

configure_logging(settings.log_level)
app = FastAPI(title="IAM Event Metrics", version="0.1.0")

app.state.recorder = build_recorder(settings)
app.state.metrics = app.state.recorder.aggregator.registry

app.include_router(events_router, tags=["events"])

logger.info(
    "iam_metrics.started",
    extra={
        "metrics_backend": settings.metrics_backend,
        "realm_lookup": settings.realm_lookup,
        "realm_lookup_failure": settings.realm_lookup_failure,
    },
)


@app.get("/health", tags=["system"], summary="Health check")
async def health_check() -> JSONResponse:
    """Return liveness response for uptime monitoring."""
    payload = {"ok": True, "data": {"status": "healthy"}}
    return JSONResponse(content=payload)


@app.get("/metrics", tags=["system"], summary="Metrics endpoint")
async def metrics_endpoint() -> Response:
    registry = app.state.metrics
    if isinstance(registry, PrometheusMetricsRegistry):
        return Response(registry.exposition(), media_type=CONTENT_TYPE_LATEST)
    return JSONResponse({"ok": True, "data": registry.snapshot()})
