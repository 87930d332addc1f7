"""
procurement_services.cache -- Injected TTL cache and request coalescing.

Responsibility:
    Short-lived memoisation of data-store reads for status lookups, and
    collapsing of concurrent identical requests into one in-flight call.
    Both are plain objects handed to the services that use them, so their
    lifetime and scope belong to the composition root.

Invariants enforced:
    - An entry is never returned after its expiry (``expires_at <= now``
      drops it on read).
    - At most one coroutine runs per coalescing key at a time; its entry is
      removed when it finishes, whether it succeeded or raised.
    - Cancelling the coroutine that owns a key cancels only that caller;
      callers sharing the key rerun the request.

Usage:
    cache = TtlCache(ttl_seconds=30, clock=SystemClock())
    coalescer = RequestCoalescer()

    value = await coalescer.run(("purchase", pid), lambda: repo.load(pid))
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

from procurement_kernel.domain.clock import Clock, SystemClock
from procurement_kernel.logging_config import get_logger

logger = get_logger("services.cache")

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    expires_at: datetime


class TtlCache:
    """Key -> value store whose entries expire ``ttl_seconds`` after being set."""

    def __init__(self, ttl_seconds: float, clock: Clock | None = None) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds cannot be negative")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or SystemClock()
        self._entries: dict[Hashable, CacheEntry[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if entry.expires_at <= self._clock.now():
            del self._entries[key]
            return default
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = CacheEntry(value, self._clock.now() + self._ttl)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


class RequestCoalescer:
    """Share one in-flight coroutine among concurrent callers with the same key."""

    def __init__(self) -> None:
        self._in_flight: dict[Hashable, asyncio.Future[Any]] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Await ``factory()`` once per key.

        Callers arriving while a call for ``key`` is running receive the
        same result (or the same exception).  ``factory`` is only invoked
        when no call is in flight.  If the running call is cancelled, the
        callers waiting on it start over with their own ``factory``; only
        the cancelled caller sees ``CancelledError``.
        """
        existing = self._in_flight.get(key)
        if existing is not None:
            logger.debug("request_coalesced", extra={"key": repr(key)})
            try:
                return await asyncio.shield(existing)
            except asyncio.CancelledError:
                if not existing.cancelled() or asyncio.current_task().cancelling():
                    raise
            logger.debug("request_restarted", extra={"key": repr(key)})
            return await self.run(key, factory)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Retrieve so an unobserved failure is not reported at GC time
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            del self._in_flight[key]
