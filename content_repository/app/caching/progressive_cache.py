"""
Progressive cache: get-or-compute with one in-flight computation per key.
"""

import asyncio
import functools
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple, TYPE_CHECKING

from shared.errors import InvalidArgumentError
from shared.logging import get_logger
from .keys import normalize_dependency_keys
from .models import CacheEntry, CachePolicy, is_empty_value
from .stores import CacheStore, MemoryCacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


ComputeResult = Tuple[Any, Iterable[str]]
ComputeFunc = Callable[[], Awaitable[ComputeResult]]


class ProgressiveCache:
    """
    Get-or-compute cache that prevents duplicate concurrent computation.

    Callers asking for the same key while a computation is running wait for
    that computation instead of starting their own. The computation runs in
    its own task and every caller waits on it through ``asyncio.shield``, so
    a caller that is cancelled or times out stops waiting without cancelling
    the work other callers share. A failed computation stores nothing and
    its exception is raised in every waiting caller.

    A value is stored only with a non-empty dependency key set; without one
    the entry could never be invalidated, so it is recomputed on every call.
    A value whose dependency keys are invalidated while it is being computed
    is returned to its callers but not stored.
    """

    def __init__(self, store: Optional[CacheStore] = None, *, metrics: Optional["MetricsCollector"] = None):
        self.store = store if store is not None else MemoryCacheStore()
        self.metrics = metrics
        self.logger = get_logger("content_repository.progressive_cache")
        self._inflight: Dict[str, "asyncio.Future[Any]"] = {}
        # Invalidation sequence number, and the last one seen per lower-cased key
        self._invalidation_seq = 0
        self._invalidated_at: Dict[str, int] = {}

    async def load_or_compute(self, key: str, policy: CachePolicy, compute: ComputeFunc) -> Any:
        """Return the cached value for ``key`` or compute and store it."""
        if not key:
            raise InvalidArgumentError("Cache key must not be empty")
        if compute is None:
            raise InvalidArgumentError("Compute function is required")

        if not policy.enabled:
            self._record_request("bypass")
            value, _ = await compute()
            return value

        entry = await self.store.get(key)
        if entry is not None:
            self._record_request("hit")
            self.logger.debug("Cache hit", cache_key=key)
            return entry.value

        self._record_request("miss")

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute_and_store(key, policy, compute))
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._release, key))
            self._record_inflight()
        else:
            self.logger.debug("Joining in-flight computation", cache_key=key)

        return await asyncio.shield(task)

    async def _compute_and_store(self, key: str, policy: CachePolicy, compute: ComputeFunc) -> Any:
        # Another caller may have stored the value between the lookup and now
        entry = await self.store.get(key)
        if entry is not None:
            return entry.value

        start = time.perf_counter()
        started_at = self._invalidation_seq
        outcome = "error"
        try:
            value, dependency_keys = await compute()

            if policy.skip_if_empty and is_empty_value(value):
                outcome = "skipped_empty"
                self.logger.debug("Empty result not cached", cache_key=key)
                return value

            keys = normalize_dependency_keys(dependency_keys)
            if not keys:
                outcome = "skipped_no_dependencies"
                self.logger.debug("Result without dependency keys not cached", cache_key=key)
                return value

            if self._invalidated_since(keys, started_at):
                outcome = "skipped_invalidated"
                self.logger.debug("Dependency invalidated during computation, not cached", cache_key=key)
                return value

            await self.store.set(key, CacheEntry.create(value, keys, policy))
            if self._invalidated_since(keys, started_at):
                await self.store.remove(key)
                outcome = "skipped_invalidated"
                return value

            outcome = "stored"
            return value

        except Exception as exc:
            self._record_error(exc)
            raise

        finally:
            self._observe_compute(time.perf_counter() - start, outcome)

    def _release(self, key: str, task: "asyncio.Future[Any]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not self._inflight:
            self._invalidated_at.clear()
        self._record_inflight()

        # Mark the exception retrieved when every waiter has gone away
        if not task.cancelled() and task.exception() is not None:
            self.logger.warning("Cache computation failed", cache_key=key, error=str(task.exception()))

    async def invalidate(self, *dependency_keys: str) -> int:
        """Evict every entry that depends on any of ``dependency_keys``."""
        keys = normalize_dependency_keys(dependency_keys)
        if keys and self._inflight:
            self._invalidation_seq += 1
            for dependency_key in keys:
                self._invalidated_at[dependency_key.lower()] = self._invalidation_seq

        removed = await self.store.invalidate(keys)
        if self.metrics and removed:
            try:
                self.metrics.increment_counter("content_cache_invalidations_total", removed, store=self.store.name)
            except Exception as exc:  # pragma: no cover - metrics failures must not break invalidation
                self.logger.debug("Failed to record invalidation metrics", error=str(exc))
        return removed

    async def touch_keys(self, *dependency_keys: str) -> int:
        """Signal that the entities behind ``dependency_keys`` changed."""
        return await self.invalidate(*dependency_keys)

    async def remove(self, key: str) -> bool:
        return await self.store.remove(key)

    async def clear(self) -> None:
        await self.store.clear()
        self.logger.info("Cache cleared", store=self.store.name)

    def _invalidated_since(self, keys: Iterable[str], seq: int) -> bool:
        return any(self._invalidated_at.get(dependency_key.lower(), 0) > seq for dependency_key in keys)

    def is_computing(self, key: str) -> bool:
        return key in self._inflight

    async def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        stats = await self.store.get_stats()
        stats["inflight"] = len(self._inflight)
        return stats

    def _record_request(self, result: str) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter("content_cache_requests_total", result=result)
        except Exception as exc:  # pragma: no cover - metrics failures must not break loads
            self.logger.debug("Failed to record cache metrics", error=str(exc))

    def _record_inflight(self) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.set_gauge("content_cache_inflight", len(self._inflight))
        except Exception as exc:  # pragma: no cover
            self.logger.debug("Failed to record cache metrics", error=str(exc))

    def _observe_compute(self, duration: float, outcome: str) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.observe_histogram("content_cache_compute_duration_seconds", duration, outcome=outcome)
        except Exception as exc:  # pragma: no cover
            self.logger.debug("Failed to record cache metrics", error=str(exc))

    def _record_error(self, exc: Exception) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.record_error(type(exc).__name__)
        except Exception as metrics_exc:  # pragma: no cover
            self.logger.debug("Failed to record cache metrics", error=str(metrics_exc))
