"""Metrics registry contract and the default in-memory backend."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Mapping, Protocol


@dataclass(frozen=True)
class CounterSpec:
    """Static metadata for a counter family: name, help text and the label names it may carry."""

    name: str
    description: str
    labels: tuple[str, ...]


@dataclass(frozen=True)
class CounterKey:
    """Identity of one counter series: metric name plus an unordered label set."""

    name: str
    labels: frozenset[tuple[str, str]]

    @classmethod
    def of(cls, name: str, labels: Mapping[str, str] | None = None) -> "CounterKey":
        return cls(name, frozenset((labels or {}).items()))

    def label_dict(self) -> dict[str, str]:
        return dict(sorted(self.labels))


class CounterHandle(Protocol):
    def increment(self, amount: float = 1.0) -> None: ...


class MetricsRegistry(Protocol):
    """Backend the aggregator writes to.

    Implementations synchronise internally and must hand back the same
    underlying counter for equal ``CounterKey`` values.
    """

    def declare(self, name: str) -> None: ...

    def is_declared(self, name: str) -> bool: ...

    def counter(self, name: str, labels: Mapping[str, str]) -> CounterHandle: ...

    def value(self, name: str, labels: Mapping[str, str]) -> float: ...

    def snapshot(self) -> list[dict[str, Any]]: ...


class _InMemoryCounter:
    __slots__ = ("_registry", "_key")

    def __init__(self, registry: "InMemoryMetricsRegistry", key: CounterKey) -> None:
        self._registry = registry
        self._key = key

    def increment(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts")
        self._registry._add(self._key, amount)


class InMemoryMetricsRegistry:
    """Thread-safe counter store keyed by ``CounterKey``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._declared: set[str] = set()
        self._counters: dict[CounterKey, float] = {}

    def declare(self, name: str) -> None:
        with self._lock:
            self._declared.add(name)

    def is_declared(self, name: str) -> bool:
        with self._lock:
            return name in self._declared

    def counter(self, name: str, labels: Mapping[str, str]) -> _InMemoryCounter:
        key = CounterKey.of(name, labels)
        with self._lock:
            self._counters.setdefault(key, 0.0)
        return _InMemoryCounter(self, key)

    def _add(self, key: CounterKey, amount: float) -> None:
        with self._lock:
            self._counters[key] = self._counters.get(key, 0.0) + amount

    def value(self, name: str, labels: Mapping[str, str]) -> float:
        with self._lock:
            return self._counters.get(CounterKey.of(name, labels), 0.0)

    def total(self, name: str) -> float:
        """Sum of every series recorded under ``name``."""

        with self._lock:
            return sum(value for key, value in self._counters.items() if key.name == name)

    def series(self, name: str) -> dict[CounterKey, float]:
        with self._lock:
            return {key: value for key, value in self._counters.items() if key.name == name}

    def snapshot(self) -> list[dict[str, Any]]:
        with self._lock:
            items = list(self._counters.items())
        items.sort(key=lambda item: (item[0].name, sorted(item[0].labels)))
        return [{"name": key.name, "labels": key.label_dict(), "value": value} for key, value in items]

    def reset(self) -> None:
        """Drop every series; declared families stay registered."""

        with self._lock:
            self._counters.clear()
