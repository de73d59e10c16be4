"""
Memoized token counters and the registry that shares them between calls.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

LOGGER = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]


@dataclass(frozen=True)
class CacheInfo:
    hits: int
    misses: int
    currsize: int
    maxsize: Optional[int]


class MemoizedCounter:
    """
    Token counter with a cache keyed on the exact text.

    When ``maxsize`` is set the oldest inserted entry is evicted once the cache
    grows past it (first in, first out; lookups do not refresh an entry).
    """

    def __init__(self, token_counter: TokenCounter, maxsize: Optional[int] = None) -> None:
        if maxsize is not None and maxsize <= 0:
            raise ValueError("cache maxsize must be positive or None.")
        self.token_counter = token_counter
        self.maxsize = maxsize
        self._cache: "OrderedDict[str, int]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __call__(self, text: str) -> int:
        with self._lock:
            if text in self._cache:
                self.hits += 1
                return self._cache[text]
            self.misses += 1

        # Count outside the lock; a slow tokenizer should not serialize callers.
        result = self.token_counter(text)

        with self._lock:
            if text not in self._cache:
                self._cache[text] = result
                if self.maxsize is not None and len(self._cache) > self.maxsize:
                    self._cache.popitem(last=False)
        return result

    def cache_info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(self.hits, self.misses, len(self._cache), self.maxsize)

    def cache_clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0


class CounterRegistry:
    """
    Hands out one ``MemoizedCounter`` per ``(counter, maxsize)`` pair.

    Unhashable counters are keyed by identity; the stored ``MemoizedCounter``
    holds the counter, which keeps its id from being reused.
    """

    def __init__(self) -> None:
        self._counters: Dict[Tuple[Any, Optional[int]], MemoizedCounter] = {}
        self._lock = threading.Lock()

    def get(self, token_counter: TokenCounter, maxsize: Optional[int] = None) -> MemoizedCounter:
        if isinstance(token_counter, MemoizedCounter):
            return token_counter

        try:
            key: Tuple[Any, Optional[int]] = (token_counter, maxsize)
            hash(key)
        except TypeError:
            key = (id(token_counter), maxsize)

        with self._lock:
            memoized = self._counters.get(key)
            if memoized is None:
                LOGGER.debug("Memoizing token counter %r (maxsize=%s)", token_counter, maxsize)
                memoized = MemoizedCounter(token_counter, maxsize)
                self._counters[key] = memoized
        return memoized

    def clear(self) -> None:
        with self._lock:
            self._counters.clear()

    def __len__(self) -> int:
        return len(self._counters)


DEFAULT_REGISTRY = CounterRegistry()


def memoize_token_counter(
    token_counter: TokenCounter,
    maxsize: Optional[int] = None,
    registry: Optional[CounterRegistry] = None,
) -> MemoizedCounter:
    """Return the shared memoized version of ``token_counter``."""

    if registry is None:
        registry = DEFAULT_REGISTRY
    return registry.get(token_counter, maxsize)
