"""Redis cache backend for tagcache.

Provides blocking Redis operations for cached payloads with optional tags.
Uses the redis-py client for connection pooling.

Tags are kept as Redis sorted sets: {prefix}:tag:{tag} holds the keys stored
under that tag, scored by their expiry time so expired members are pruned on
write. Flushing a tag deletes the members it read and removes exactly those
from the set, so a key tagged while the flush runs stays reachable.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import TYPE_CHECKING, cast

import redis

from tagcache.cache.backend import MISS, CacheBackend, CacheBackendError, _Miss
from tagcache.config import settings

if TYPE_CHECKING:
    from redis import Redis

# Module-level connection pool
_redis_client: Redis | None = None


def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=False,  # Payloads are bytes
        )
    return _redis_client


def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class RedisCache(CacheBackend):
    """Cache operations against a shared Redis.

    With tagging disabled this is a plain key/value TTL store: tags passed to
    put are dropped and flush_tag does nothing.
    """

    def __init__(self, client: Redis, prefix: str = "cached", tagging: bool = True):
        self.client = client
        self.prefix = prefix
        self.tagging = tagging

    def _tag_key(self, tag: str) -> str:
        return f"{self.prefix}:tag:{tag}"

    def get(self, key: str) -> bytes | _Miss:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            raise CacheBackendError(f"GET {key} failed: {e}") from e
        if value is None:
            return MISS
        return cast(bytes, value)

    def put(self, key: str, value: bytes, ttl: int | None, tags: Iterable[str] = ()) -> None:
        tag_keys = [self._tag_key(tag) for tag in tags] if self.tagging else []
        now = time.time()
        expires_at = now + ttl if ttl and ttl > 0 else float("inf")
        try:
            with self.client.pipeline() as pipe:
                if ttl and ttl > 0:
                    pipe.set(key, value, ex=ttl)
                else:
                    pipe.set(key, value)
                for tag_key in tag_keys:
                    pipe.zadd(tag_key, {key: expires_at})
                    pipe.zremrangebyscore(tag_key, "-inf", f"({now}")
                pipe.execute()
        except redis.RedisError as e:
            raise CacheBackendError(f"SET {key} failed: {e}") from e

    def forget(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            raise CacheBackendError(f"DEL {key} failed: {e}") from e

    def flush_tag(self, tag: str) -> None:
        if not self.tagging:
            return
        tag_key = self._tag_key(tag)
        try:
            members = cast(list[bytes], self.client.zrange(tag_key, 0, -1))
            if not members:
                return
            # Only the members read here: a concurrent put keeps its membership
            with self.client.pipeline() as pipe:
                pipe.delete(*members)
                pipe.zrem(tag_key, *members)
                pipe.execute()
        except redis.RedisError as e:
            raise CacheBackendError(f"Flushing tag {tag} failed: {e}") from e

    def supports_tags(self) -> bool:
        return self.tagging

    def flush(self) -> None:
        """Delete every key under the prefix.

        Uses SCAN to avoid blocking on large keyspaces.
        """
        try:
            for key in self.client.scan_iter(match=f"{self.prefix}:*"):
                self.client.delete(key)
        except redis.RedisError as e:
            raise CacheBackendError(f"Flushing {self.prefix}:* failed: {e}") from e

    def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            return bool(self.client.ping())
        except Exception:
            return False
