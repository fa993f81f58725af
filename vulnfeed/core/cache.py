"""
Refreshing in-process mappings.

Provides a read-mostly mapping that is periodically replaced from a
remote source. Readers take the current reference without locking and
always see a complete mapping; refreshes build a new mapping and swap
the reference under a lock.

Key features:
- Immutable snapshots (MappingProxyType) for lock-free reads
- Single writer at a time via asyncio.Lock
- Rate limited refresh attempts
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

from vulnfeed.core.constants import MAPPING_REFRESH_MIN_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

V = TypeVar("V")


class RateLimiter:
    """Token bucket with a burst of one: one event per ``interval`` seconds."""

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self._clock = clock
        self._next_allowed: float = float("-inf")

    def allow(self) -> bool:
        now = self._clock()
        if now < self._next_allowed:
            return False
        self._next_allowed = now + self.interval
        return True


class RefreshingMapping(ABC, Generic[V]):
    """
    Mapping snapshot replaced by ``refresh``.

    Subclasses implement ``load`` which returns a new dict, or None when the
    source has not changed.
    """

    def __init__(
        self,
        min_interval: float = MAPPING_REFRESH_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._mapping: Mapping[str, V] = MappingProxyType({})
        self._lock: asyncio.Lock = asyncio.Lock()
        self._limiter = RateLimiter(min_interval, clock=clock)
        self.last_refresh: Optional[float] = None
        self._clock = clock

    @property
    def mapping(self) -> Mapping[str, V]:
        return self._mapping

    def get(self, key: str, default: Any = None) -> Any:
        return self._mapping.get(key, default)

    @abstractmethod
    async def load(self) -> Optional[Dict[str, V]]:
        """Fetch a replacement mapping, or None if unchanged."""

    async def refresh(self) -> bool:
        """
        Attempt a refresh.

        Returns:
            True if the mapping was replaced. Rate limited or unchanged
            attempts return False; load errors propagate and keep the old
            mapping in place.
        """
        if not self._limiter.allow():
            logger.debug(f"{type(self).__name__}: refresh rate limited")
            return False
        async with self._lock:
            fresh = await self.load()
            if fresh is None:
                return False
            self._mapping = MappingProxyType(dict(fresh))
            self.last_refresh = self._clock()
        logger.info(f"{type(self).__name__}: mapping refreshed ({len(fresh)} entries)")
        return True
