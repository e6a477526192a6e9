"""Cache backend interface.

Defines the uniform contract the engine uses to talk to a key/value store,
plus an in-process implementation and the tag support capability.

Backends store raw bytes. Serialization is the engine's job (see codec.py).
Expiry is backend-native: the engine never evicts entries itself.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Final

logger = logging.getLogger(__name__)


class _Miss:
    """Marker for a key that is not in the cache."""

    _instance: _Miss | None = None

    def __new__(cls) -> _Miss:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Final = _Miss()


class CacheBackendError(Exception):
    """The cache store could not be reached or rejected an operation."""

    pass


class CacheBackend(ABC):
    """Abstract base class for cache stores.

    All methods must be safe to call concurrently; the store is expected to
    provide atomicity per key.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | _Miss:
        """Return the stored payload or MISS."""
        pass

    @abstractmethod
    def put(self, key: str, value: bytes, ttl: int | None, tags: Iterable[str] = ()) -> None:
        """Store a payload for ttl seconds, indexed under the given tags.

        Tags are ignored by stores without tag support.
        """
        pass

    @abstractmethod
    def forget(self, key: str) -> None:
        """Remove a single key."""
        pass

    @abstractmethod
    def flush_tag(self, tag: str) -> None:
        """Remove every key stored under a tag."""
        pass

    @abstractmethod
    def supports_tags(self) -> bool:
        """Whether flush_tag actually removes anything."""
        pass

    @abstractmethod
    def flush(self) -> None:
        """Remove everything this backend owns. Never called automatically."""
        pass

    def health_check(self) -> bool:
        """Check connectivity to the store."""
        return True

    @property
    def name(self) -> str:
        return self.__class__.__name__


class InMemoryCache(CacheBackend):
    """Process-local cache store.

    Suitable for single-process deployments and tests. With tagging disabled
    it behaves like a plain key/value TTL store.
    """

    def __init__(self, tagging: bool = True, clock: Callable[[], float] = time.monotonic):
        self.tagging = tagging
        self._clock = clock
        self._data: dict[str, tuple[bytes, float | None]] = {}
        self._tags: dict[str, set[str]] = {}
        self._key_tags: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | _Miss:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return MISS
            value, expires_at = item
            if expires_at is not None and self._clock() >= expires_at:
                self._drop(key)
                return MISS
            return value

    def put(self, key: str, value: bytes, ttl: int | None, tags: Iterable[str] = ()) -> None:
        expires_at = self._clock() + ttl if ttl and ttl > 0 else None
        with self._lock:
            self._data[key] = (value, expires_at)
            if self.tagging:
                for tag in tags:
                    self._tags.setdefault(tag, set()).add(key)
                    self._key_tags.setdefault(key, set()).add(tag)

    def forget(self, key: str) -> None:
        with self._lock:
            self._drop(key)

    def flush_tag(self, tag: str) -> None:
        if not self.tagging:
            return
        with self._lock:
            for key in list(self._tags.get(tag, ())):
                self._drop(key)

    def _drop(self, key: str) -> None:
        """Remove a key and its tag memberships. Caller holds the lock."""
        self._data.pop(key, None)
        for tag in self._key_tags.pop(key, ()):
            members = self._tags.get(tag)
            if members is None:
                continue
            members.discard(key)
            if not members:
                del self._tags[tag]

    def supports_tags(self) -> bool:
        return self.tagging

    def flush(self) -> None:
        with self._lock:
            self._data.clear()
            self._tags.clear()
            self._key_tags.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISS

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class TagSupport:
    """Memoized answer to "can this backend flush by tag?".

    The probe runs lazily on first use. A probe that raises is treated as
    "tags unsupported". Racing first calls may both probe; the result is
    deterministic for a given backend so the last write wins harmlessly.
    """

    def __init__(self, probe: Callable[[], bool]):
        self._probe = probe
        self._supported: bool | None = None

    @classmethod
    def of(cls, backend: CacheBackend) -> TagSupport:
        return cls(backend.supports_tags)

    @classmethod
    def fixed(cls, supported: bool) -> TagSupport:
        capability = cls(lambda: supported)
        capability._supported = supported
        return capability

    @property
    def enabled(self) -> bool:
        if self._supported is None:
            try:
                self._supported = bool(self._probe())
            except Exception as e:
                logger.warning(f"Tag support probe failed, using exact-key invalidation: {e}")
                self._supported = False
        return self._supported

    def __bool__(self) -> bool:
        return self.enabled
