"""
In-process TTL cache for external metadata lookups (OMDb).

Usage:
    @cache(ttl=600)
    def lookup(imdb_id):
        return remote_call(imdb_id)

    lookup.invalidate("tt0133093")
    clear_all_cache()
"""
from functools import wraps
from typing import Any, Callable, Optional
from collections import OrderedDict
from datetime import datetime, timedelta
import hashlib
import json
import threading
import logging

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Bounded mapping of key -> (value, expiry) with least-recently-used eviction.
    Per-process; every worker keeps its own copy.
    """

    def __init__(self, max_size: int = 1000):
        self._entries: OrderedDict = OrderedDict()
        self._max_size = max_size
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(func_name: str, args: tuple, kwargs: dict) -> str:
        raw = json.dumps(
            {'func': func_name, 'args': args, 'kwargs': sorted(kwargs.items())},
            sort_keys=True,
            default=str,
        )
        return hashlib.md5(raw.encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[1] and datetime.now() > entry[1]:
                del self._entries[key]
                entry = None

            if entry is None:
                self.misses += 1
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            return entry[0]

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expiry = datetime.now() + timedelta(seconds=ttl) if ttl else None
        with self._lock:
            self._entries[key] = (value, expiry)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cache key: {evicted}")

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)


_store = CacheStore()


def cache(ttl: int = 300):
    """
    Memoise a function for ``ttl`` seconds.

    Exceptions and None results are not cached. Arguments must be JSON
    serialisable or have a stable str().
    """
    def decorator(func: Callable) -> Callable:
        def key_for(args, kwargs) -> str:
            return CacheStore.make_key(func.__qualname__, args, kwargs)

        @wraps(func)
        def wrapper(*args, **kwargs):
            key = key_for(args, kwargs)
            value = _store.get(key)
            if value is not None:
                logger.debug(f"Cache hit for {func.__qualname__}")
                return value

            value = func(*args, **kwargs)
            _store.set(key, value, ttl)
            return value

        wrapper.invalidate = lambda *args, **kwargs: _store.delete(key_for(args, kwargs))
        return wrapper

    return decorator


def clear_all_cache() -> None:
    _store.clear()
    logger.info("Cache cleared")
