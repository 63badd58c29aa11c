"""Optional memo of optimization results keyed by a hash of the inputs.

Safe to share across threads: lookups and inserts happen under one lock,
and ``get_or_compute`` runs the computation at most once per key while
concurrent callers for the same key wait on the first caller's future.
Results are frozen models, so a cached instance can be handed to many
callers.
"""

from __future__ import annotations

import hashlib
import json
import threading
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

from gem_optimizer.models.results import CacheStats, OptimizationResult


def cache_key(*parts: Any) -> str:
    """SHA-256 of the JSON encoding of ``parts`` (sorted keys)."""
    payload = json.dumps(parts, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class OptimizationCache:
    """Bounded insertion-ordered cache; the oldest entry is evicted first."""

    def __init__(self, max_entries: int = 256) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, OptimizationResult] = OrderedDict()
        self._in_flight: dict[str, Future] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> OptimizationResult | None:
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self.misses += 1
            else:
                self.hits += 1
            return result

    def put(self, key: str, result: OptimizationResult) -> OptimizationResult:
        """Store ``result`` unless ``key`` is already present; return the stored value."""
        with self._lock:
            return self._store(key, result)

    def get_or_compute(self, key: str, compute: Callable[[], OptimizationResult]) -> OptimizationResult:
        """Cached value for ``key``, running ``compute`` only if no caller has.

        While one caller computes, others asking for the same key block on
        its future and receive the same instance (or the same exception).
        Failed computations are not cached.
        """
        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self.hits += 1
                return result
            pending = self._in_flight.get(key)
            owner = pending is None
            if owner:
                self.misses += 1
                pending = Future()
                self._in_flight[key] = pending
            else:
                self.hits += 1

        if not owner:
            return pending.result()

        try:
            result = compute()
        except BaseException as exc:
            with self._lock:
                del self._in_flight[key]
            pending.set_exception(exc)
            raise

        with self._lock:
            result = self._store(key, result)
            del self._in_flight[key]
        pending.set_result(result)
        return result

    def _store(self, key: str, result: OptimizationResult) -> OptimizationResult:
        existing = self._entries.get(key)
        if existing is not None:
            return existing
        self._entries[key] = result
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(enabled=True, entries=len(self._entries), hits=self.hits, misses=self.misses)
