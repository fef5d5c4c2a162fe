"""
cache.py - compute-once cache for per-version artifacts.

Resolved trees, mapping artifacts, rendered schemas and processors are built
lazily on first use and then shared read-only by every request.  The first
caller for a key builds the value while concurrent callers for the same key
wait; callers for other keys are not blocked.  A failed build stores
nothing, so the next access retries.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Hashable, Optional

__all__ = ["OnceCache"]

logger = logging.getLogger(__name__)


class OnceCache:
    """Thread-safe memo of ``key → value`` with at-most-once construction."""

    def __init__(self, name: str = "cache"):
        self.name = name
        self._values: dict[Hashable, Any] = {}
        self._locks: dict[Hashable, threading.Lock] = {}
        self._guard = threading.Lock()
        self._generation: Optional[int] = None

    def get(self, key: Hashable, factory: Callable[[], Any], *, generation: Optional[int] = None) -> Any:
        """Return the value for *key*, building it with *factory* on a miss.

        Passing a *generation* newer than the last one seen drops every
        entry first; keys should include the generation they were built under.
        """
        if generation is not None and generation != self._generation:
            self._advance(generation)

        try:
            return self._values[key]
        except KeyError:
            pass

        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())

        with lock:
            if key in self._values:
                return self._values[key]
            logger.debug("%s miss: %r", self.name, key)
            try:
                value = factory()
            except Exception:
                logger.debug("%s build failed: %r", self.name, key)
                raise
            self._values[key] = value
            return value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def clear(self) -> None:
        with self._guard:
            self._values = {}
            self._locks = {}
            self._generation = None

    def _advance(self, generation: int) -> None:
        with self._guard:
            if self._generation is not None and generation <= self._generation:
                return
            if self._values:
                logger.debug("%s dropped %d stale entries", self.name, len(self._values))
            self._values = {}
            self._locks = {}
            self._generation = generation
