"""In-memory address cache with a pluggable eviction policy."""

from __future__ import annotations

import re
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ...models.domain import ResolvedAddress

_WHITESPACE = re.compile(r"\s+")


def normalize_address(raw_address: str) -> str:
    """Cache key for an address: collapsed whitespace, trimmed, case-folded."""
    return _WHITESPACE.sub(" ", raw_address or "").strip().casefold()


class EvictionPolicy(ABC):
    """Decides whether a cache entry stored at ``stored_at`` is still usable."""

    @abstractmethod
    def is_expired(self, stored_at: float, now: float) -> bool:
        raise NotImplementedError


class NeverEvict(EvictionPolicy):
    """Addresses are treated as immutable facts."""

    def is_expired(self, stored_at: float, now: float) -> bool:
        return False

    def __repr__(self) -> str:
        return "NeverEvict()"


class TTLEviction(EvictionPolicy):
    def __init__(self, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive.")
        self.ttl_seconds = ttl_seconds

    def is_expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl_seconds

    def __repr__(self) -> str:
        return f"TTLEviction(ttl_seconds={self.ttl_seconds})"


class AddressCache:
    """Thread-safe mapping from normalized address text to ``ResolvedAddress``."""

    def __init__(
        self,
        policy: EvictionPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.policy = policy or NeverEvict()
        self._clock = clock
        self._entries: dict[str, tuple[ResolvedAddress, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ResolvedAddress]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self.policy.is_expired(stored_at, self._clock()):
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: ResolvedAddress) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def build_cache(ttl_seconds: float | None) -> AddressCache:
    """Cache for the configured policy: TTL when a lifetime is set, otherwise never evict."""
    policy: EvictionPolicy = TTLEviction(ttl_seconds) if ttl_seconds else NeverEvict()
    return AddressCache(policy=policy)
