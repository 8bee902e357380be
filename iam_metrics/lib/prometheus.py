"""``prometheus_client`` backed metrics registry."""

from __future__ import annotations

import threading
from typing import Any, Mapping

from prometheus_client import CollectorRegistry, Counter, generate_latest

from iam_metrics.lib.metrics import CounterSpec


class PrometheusMetricsRegistry:
    """Registry that maps counter families onto ``prometheus_client`` collectors.

    A family is created with the full label set from its ``CounterSpec``;
    labels a particular event does not carry are exported empty, which
    Prometheus treats the same as an absent label.

    Series shape differs from ``InMemoryMetricsRegistry`` on purpose: there a
    success attempt (no ``error`` label) and an error attempt are distinct
    keys with different label names, here both are children of one family
    and ``value()`` pads the labels it is not given with empty strings.
    """

    def __init__(self, specs: Mapping[str, CounterSpec], registry: CollectorRegistry | None = None) -> None:
        self._specs = specs
        self._registry = registry or CollectorRegistry()
        self._lock = threading.Lock()
        self._families: dict[str, Counter] = {}

    @property
    def collector_registry(self) -> CollectorRegistry:
        return self._registry

    def declare(self, name: str) -> None:
        self._family(name)

    def is_declared(self, name: str) -> bool:
        return name in self._families

    def counter(self, name: str, labels: Mapping[str, str]) -> "_PrometheusCounter":
        family = self._family(name)
        return _PrometheusCounter(family.labels(**self._label_values(name, labels)))

    def value(self, name: str, labels: Mapping[str, str]) -> float:
        sample = _sample_name(name)
        value = self._registry.get_sample_value(sample, self._label_values(name, labels))
        return value or 0.0

    def snapshot(self) -> list[dict[str, Any]]:
        with self._lock:
            families = list(self._families.items())
        series: list[dict[str, Any]] = []
        for name, family in families:
            sample_name = _sample_name(name)
            for metric in family.collect():
                for sample in metric.samples:
                    if sample.name != sample_name:
                        continue
                    labels = {key: value for key, value in sample.labels.items() if value}
                    series.append({"name": name, "labels": labels, "value": sample.value})
        series.sort(key=lambda item: (item["name"], sorted(item["labels"].items())))
        return series

    def exposition(self) -> bytes:
        return generate_latest(self._registry)

    def _family(self, name: str) -> Counter:
        family = self._families.get(name)
        if family is not None:
            return family
        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown counter '{name}'")
        with self._lock:
            family = self._families.get(name)
            if family is None:
                family = Counter(_family_name(name), spec.description, spec.labels, registry=self._registry)
                self._families[name] = family
        return family

    def _label_values(self, name: str, labels: Mapping[str, str]) -> dict[str, str]:
        spec = self._specs[name]
        unknown = set(labels) - set(spec.labels)
        if unknown:
            raise ValueError(f"Counter '{name}' does not accept labels {sorted(unknown)}")
        return {label: labels.get(label, "") for label in spec.labels}


class _PrometheusCounter:
    __slots__ = ("_child",)

    def __init__(self, child: Counter) -> None:
        self._child = child

    def increment(self, amount: float = 1.0) -> None:
        self._child.inc(amount)


def _family_name(name: str) -> str:
    # prometheus_client appends ``_total`` to counter samples itself.
    return name.removesuffix("_total")


def _sample_name(name: str) -> str:
    return f"{_family_name(name)}_total"
