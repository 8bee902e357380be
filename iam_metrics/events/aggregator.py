"""Named counter registry partitioned by label set."""

from __future__ import annotations

from typing import Mapping

from iam_metrics.events import catalog
from iam_metrics.lib.metrics import CounterSpec, MetricsRegistry


class Aggregator:
    """Increment labeled counters on a pluggable metrics registry.

    The generic counters are declared when the aggregator is built; flow
    counters appear in the registry the first time they are incremented.
    """

    def __init__(
        self,
        registry: MetricsRegistry,
        generic: tuple[CounterSpec, ...] = catalog.GENERIC_COUNTERS,
    ) -> None:
        self._registry = registry
        for spec in generic:
            registry.declare(spec.name)

    @property
    def registry(self) -> MetricsRegistry:
        return self._registry

    def is_registered(self, name: str) -> bool:
        return self._registry.is_declared(name)

    def increment(self, name: str, labels: Mapping[str, str]) -> None:
        self._registry.counter(name, labels).increment()
