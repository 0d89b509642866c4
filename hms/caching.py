"""
In-process TTL cache used to memoise expensive reads.

The application config builds two :class:`MemoryCache` instances when
Django starts: the memoisation cache handed to request handlers as
``request.memory_cache`` and the auth cache (``request.auth_cache``)
holding revoked and password reset tokens (see :mod:`hms.middleware`).
Entries expire after a per-entry time-to-live; expired entries are
dropped lazily when read and proactively by :class:`CacheSweeper`.

All timestamps and TTLs are milliseconds.  An entry is still valid at
the exact instant of its expiry and stale strictly after it.
"""
from __future__ import annotations

import logging
import re
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

logger = logging.getLogger(__name__)

_MISSING = object()

DEFAULT_TTL_MS = 5 * 60 * 1000


class CACHE_KEYS:
    DASHBOARD_STATS = "dashboard:stats"
    PATIENT_LIST = "patients:list"
    APPOINTMENT_LIST = "appointments:list"
    DOCTOR_SCHEDULE = "doctors:schedule"
    INVENTORY_ITEMS = "inventory:items"
    REPORTS_DATA = "reports:data"
    HOSPITAL_SETTINGS = "settings:hospital"


class CACHE_TTL:
    SHORT = 2 * 60 * 1000
    MEDIUM = 5 * 60 * 1000
    LONG = 15 * 60 * 1000
    VERY_LONG = 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CacheEntry:
    value: Any
    expires_at: int

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at


def generate_key(prefix: str, params: Mapping[str, Any]) -> str:
    """Build a key that does not depend on the order of ``params``."""
    pairs = "|".join(f"{name}:{params[name]}" for name in sorted(params))
    return f"{prefix}:{pairs}"


def pattern_to_regex(pattern: str) -> re.Pattern:
    """Compile a ``*`` wildcard pattern; everything else matches literally."""
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.DOTALL)


class MemoryCache:
    """Thread-safe key/value store with per-entry expiry."""

    def __init__(self, default_ttl: int = DEFAULT_TTL_MS, clock: Optional[Callable[[], int]] = None):
        self.default_ttl = default_ttl
        self._clock = clock or now_ms
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, tuple[Future, int]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.peek(key, _MISSING) is not _MISSING

    def peek(self, key: str, default: Any = None) -> Any:
        """Read a live value without touching the hit/miss counters."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(self._clock()):
                return default
            return entry.value

    def _lookup(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return _MISSING
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                return _MISSING
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def cleanup(self) -> int:
        """Drop every expired entry, whether or not anyone reads it again."""
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def get_or_set(self, key: str, compute: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value or compute, store and return it.

        Concurrent misses on the same key share a single call to
        ``compute``: the first caller runs it, the others wait on its
        future and receive the same value or exception.  Nothing is
        stored when ``compute`` raises.

        A ``compute`` that asks for its own key again would wait on
        itself forever, so that raises :class:`RuntimeError` instead.
        """
        me = threading.get_ident()
        with self._lock:
            value = self._lookup(key)
            if value is not _MISSING:
                return value
            inflight = self._inflight.get(key)
            owner = inflight is None
            if owner:
                pending = Future()
                self._inflight[key] = (pending, me)
            else:
                pending, computing_thread = inflight
                if computing_thread == me:
                    raise RuntimeError(f"recursive get_or_set for cache key {key!r}")
        if not owner:
            return pending.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            pending.set_exception(exc)
            raise
        with self._lock:
            self.set(key, value, ttl)
            self._inflight.pop(key, None)
        pending.set_result(value)
        return value

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key containing a match for ``pattern``.

        ``*`` stands for any run of characters and the pattern is not
        anchored, so ``stats`` also drops ``dashboard:stats``.
        """
        regex = pattern_to_regex(pattern)
        with self._lock:
            doomed = [key for key in self._entries if regex.search(key)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("invalidated %d cache keys for pattern %r", len(doomed), pattern)
        return len(doomed)

    generate_key = staticmethod(generate_key)

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "default_ttl": self.default_ttl,
            }


class CacheSweeper:
    """Background thread that periodically evicts expired entries from one or more caches."""

    def __init__(self, *caches: MemoryCache, interval_seconds: float = 600):
        self.caches = caches
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="hms-cache-sweeper", daemon=True)
        self._thread.start()
        logger.info("cache sweeper started (every %ss)", self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def sweep(self) -> int:
        removed = sum(cache.cleanup() for cache in self.caches)
        logger.debug("cache sweep removed %d expired entries", removed)
        return removed

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.sweep()
