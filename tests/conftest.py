"""Pytest fixtures for the identity event metrics tests."""

from collections.abc import AsyncIterator, Iterator
import os
import threading

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("METRICS_BACKEND", "memory")
os.environ.setdefault("REALM_LOOKUP", "static")
os.environ.setdefault("REALM_NAMES", '{"0b7e-demo": "demo", "5c1f-partners": "partners"}')
os.environ.setdefault("REALM_LOOKUP_FAILURE", "skip")

from iam_metrics.events import Aggregator, MetricEventRecorder, RealmNameCache
from iam_metrics.lib.metrics import InMemoryMetricsRegistry
from iam_metrics.lib.realm_client import RealmLookupError
from iam_metrics.main import app as fastapi_app

DEMO_REALM_ID = "0b7e-demo"
PARTNERS_REALM_ID = "5c1f-partners"


class FakeRealmLookup:
    """Realm lookup double that records every call it receives."""

    def __init__(self, names: dict[str, str] | None = None) -> None:
        self.names = dict(names or {DEMO_REALM_ID: "demo", PARTNERS_REALM_ID: "partners"})
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def lookup_realm_name(self, realm_id: str) -> str:
        with self._lock:
            self.calls.append(realm_id)
        try:
            return self.names[realm_id]
        except KeyError:
            raise RealmLookupError(f"Unknown realm id '{realm_id}'") from None


@pytest.fixture(scope="session")
def app() -> FastAPI:
    """Return the FastAPI application instance."""
    return fastapi_app


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an `httpx.AsyncClient` bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest.fixture(autouse=True)
def reset_runtime(app: FastAPI) -> Iterator[None]:
    """Reset the application's counters across tests."""

    metrics = getattr(app.state, "metrics", None)
    if metrics is not None:
        metrics.reset()
    yield
    if metrics is not None:
        metrics.reset()


@pytest.fixture()
def realm_lookup() -> FakeRealmLookup:
    return FakeRealmLookup()


@pytest.fixture()
def registry() -> InMemoryMetricsRegistry:
    return InMemoryMetricsRegistry()


@pytest.fixture()
def recorder(registry: InMemoryMetricsRegistry, realm_lookup: FakeRealmLookup) -> MetricEventRecorder:
    return MetricEventRecorder(Aggregator(registry), RealmNameCache(realm_lookup))
