"""Cache-aside engine.

Read path:
    policy says no -> loader()
    key hit        -> decoded payload
    miss           -> loader(), store with TTL and tags, return value

Invalidation:
    tags supported -> flush each affected tag
    otherwise      -> forget each exact key the caller can rebuild

The cache is strictly best-effort. Backend failures are logged and swallowed
so a read degrades to the uncached value and a write path never sees a cache
error. Loader failures propagate unchanged.

There is no single-flight: concurrent misses on one key may each run the
loader, and a read that started before an invalidation may write back a value
computed before it. Both windows are bounded by the TTL.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

from tagcache.cache.backend import MISS, CacheBackend
from tagcache.cache.codec import JSON, Codec
from tagcache.cache.keys import CacheKeys
from tagcache.cache.policy import EntityClass, PolicyResolver
from tagcache.observability.logging import LogContext
from tagcache.observability.metrics import (
    record_cache_bypass,
    record_cache_error,
    record_cache_hit,
    record_cache_miss,
    record_invalidation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TagsArg = Sequence[str] | Callable[[Any], Iterable[str]]


class CacheAsideEngine:
    """Read-through and invalidation core shared by every caching repository."""

    def __init__(
        self,
        backend: CacheBackend,
        resolver: PolicyResolver,
        keys: CacheKeys | None = None,
    ):
        self.backend = backend
        self.resolver = resolver
        self.keys = keys if keys is not None else CacheKeys()

    @property
    def tags_supported(self) -> bool:
        return self.resolver.tags_supported()

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    def read_through(
        self,
        entity: EntityClass,
        variant: str,
        discriminators: Sequence[object],
        loader: Callable[[], T],
        *,
        tags: TagsArg = (),
        identifier: str | None = None,
        codec: Codec = JSON,
        store_if: Callable[[T], bool] | None = None,
        hashed: bool = False,
    ) -> T:
        """Return the cached value for the discriminators, loading it on a miss.

        Args:
            entity: Entity class; selects policy, TTL and key namespace
            variant: Cached shape within the namespace (e.g. "uri")
            discriminators: Inputs identifying the read
            loader: Fetches the value from the underlying store
            tags: Tags for the stored entry, or a callable deriving them
                from the loaded value
            identifier: Primary identifier checked against the exclusion list
            codec: Serializes the value for the backend
            store_if: Optional veto on storing a freshly loaded value
            hashed: Digest a single discriminator instead of using it verbatim
        """
        if not self.resolver.should_cache(entity, identifier):
            record_cache_bypass(entity.value)
            return loader()

        key = self.keys.key(entity.value, variant, *discriminators, hashed=hashed)
        return self.remember(entity, key, loader, tags=tags, codec=codec, store_if=store_if)

    def remember(
        self,
        entity: EntityClass,
        key: str,
        loader: Callable[[], T],
        *,
        tags: TagsArg = (),
        codec: Codec = JSON,
        store_if: Callable[[T], bool] | None = None,
    ) -> T:
        """Cache-aside on an already built key. Policy is not consulted."""
        with LogContext(entity=entity.value, operation="read"):
            cached = self._get(entity, key, codec)
            if cached is not MISS:
                record_cache_hit(entity.value)
                logger.debug(f"Cache hit: {key}")
                return cached  # type: ignore[return-value]

            record_cache_miss(entity.value)
            value = loader()

            if store_if is not None and not store_if(value):
                logger.debug(f"Not storing {key}: vetoed by caller")
                return value

            self._put(entity, key, value, tags, codec)
            return value

    def _get(self, entity: EntityClass, key: str, codec: Codec) -> Any:
        try:
            payload = self.backend.get(key)
        except Exception as e:
            record_cache_error(entity.value, "get")
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return MISS

        if payload is MISS:
            return MISS

        try:
            return codec.decode(payload)  # type: ignore[arg-type]
        except Exception as e:
            record_cache_error(entity.value, "decode")
            logger.warning(f"Undecodable cache payload for {key}, treating as miss: {e}")
            return MISS

    def _put(
        self,
        entity: EntityClass,
        key: str,
        value: Any,
        tags: TagsArg,
        codec: Codec,
    ) -> None:
        try:
            resolved_tags = list(tags(value) if callable(tags) else tags)
            if not self.tags_supported:
                resolved_tags = []
            self.backend.put(key, codec.encode(value), self.resolver.ttl(entity), resolved_tags)
        except Exception as e:
            record_cache_error(entity.value, "put")
            logger.warning(f"Cache write failed for {key}, returning uncached value: {e}")

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate(
        self,
        entity: EntityClass,
        tags: Iterable[str] = (),
        keys: Iterable[str] = (),
    ) -> int:
        """Invalidate by tag when the backend can, by exact key otherwise.

        Returns the number of backend operations that succeeded.
        """
        with LogContext(entity=entity.value, operation="invalidate"):
            if self.tags_supported:
                done = sum(self._flush_tag(entity, tag) for tag in dict.fromkeys(tags))
                record_invalidation(entity.value, "tag", done)
            else:
                done = sum(self._forget(entity, key) for key in dict.fromkeys(keys))
                record_invalidation(entity.value, "key", done)
            return done

    def forget(self, entity: EntityClass, key: str) -> bool:
        """Remove one exact key regardless of tag support."""
        with LogContext(entity=entity.value, operation="forget"):
            done = self._forget(entity, key)
            record_invalidation(entity.value, "key", int(done))
            return done

    def flush_tag(self, entity: EntityClass, tag: str) -> bool:
        """Flush one tag. Does nothing without tag support."""
        if not self.tags_supported:
            return False
        with LogContext(entity=entity.value, operation="flush_tag"):
            done = self._flush_tag(entity, tag)
            record_invalidation(entity.value, "tag", int(done))
            return done

    def _flush_tag(self, entity: EntityClass, tag: str) -> bool:
        try:
            self.backend.flush_tag(tag)
        except Exception as e:
            record_cache_error(entity.value, "flush_tag")
            logger.warning(f"Failed to flush tag {tag}: {e}")
            return False
        logger.debug(f"Flushed tag {tag}")
        return True

    def _forget(self, entity: EntityClass, key: str) -> bool:
        try:
            self.backend.forget(key)
        except Exception as e:
            record_cache_error(entity.value, "forget")
            logger.warning(f"Failed to forget {key}: {e}")
            return False
        logger.debug(f"Forgot {key}")
        return True

    # -------------------------------------------------------------------------
    # Administrative
    # -------------------------------------------------------------------------

    def clear_class(self, entity: EntityClass) -> bool:
        """Drop every cached value of an entity class.

        Needs tag support: without it the engine cannot enumerate the keys,
        and flushing the whole store is left to flush_everything().
        """
        with LogContext(entity=entity.value, operation="clear"):
            if not self.tags_supported:
                logger.warning(
                    f"Cannot clear all {entity.value} caches without tag support; "
                    "entries expire by TTL"
                )
                return False
            logger.info(f"Clearing all {entity.value} caches")
            return self.flush_tag(entity, entity.value)

    def flush_everything(self) -> bool:
        """Flush the whole backend namespace. Dangerous; never automatic."""
        logger.warning(f"Flushing entire cache backend {self.backend.name}")
        try:
            self.backend.flush()
        except Exception as e:
            logger.error(f"Full cache flush failed: {e}")
            return False
        return True
