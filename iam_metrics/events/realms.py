"""Process-lifetime cache of realm id to realm name."""

from __future__ import annotations

import threading

from iam_metrics.lib.realm_client import RealmLookup


class RealmNameCache:
    """Memoize realm name lookups.

    Entries are never evicted: realm names are treated as immutable once a
    realm exists, so a rename after first sight keeps the old label value.
    Concurrent misses for the same id wait on a per-id lock and share one
    lookup. Failed lookups are not cached and will be retried on the next
    event for that realm.
    """

    def __init__(self, lookup: RealmLookup) -> None:
        self._lookup = lookup
        self._names: dict[str, str] = {}
        self._lock = threading.Lock()
        self._pending: dict[str, threading.Lock] = {}

    def resolve(self, realm_id: str) -> str:
        name = self._names.get(realm_id)
        if name is not None:
            return name

        with self._lock:
            name = self._names.get(realm_id)
            if name is not None:
                return name
            key_lock = self._pending.setdefault(realm_id, threading.Lock())

        with key_lock:
            name = self._names.get(realm_id)
            if name is None:
                try:
                    name = self._lookup.lookup_realm_name(realm_id)
                    with self._lock:
                        self._names[realm_id] = name
                finally:
                    with self._lock:
                        self._pending.pop(realm_id, None)
        return name

    def cached(self) -> dict[str, str]:
        with self._lock:
            return dict(self._names)

    def __contains__(self, realm_id: object) -> bool:
        return realm_id in self._names

    def __len__(self) -> int:
        return len(self._names)
