"""Tests for the Redis backend.

Uses fakeredis for deterministic testing without a running Redis.
"""

from __future__ import annotations

import warnings

import fakeredis
import pytest

from tagcache.cache.backend import MISS, CacheBackendError
from tagcache.cache.redis import RedisCache


@pytest.fixture
def client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis()


@pytest.fixture
def cache(client: fakeredis.FakeRedis) -> RedisCache:
    return RedisCache(client, prefix="cached")


class TestRedisCache:
    """Test key/value operations."""

    def test_get_missing_key(self, cache: RedisCache) -> None:
        assert cache.get("cached:entries:entry:1") is MISS

    def test_put_then_get(self, cache: RedisCache) -> None:
        cache.put("cached:entries:entry:1", b"payload", 300)
        assert cache.get("cached:entries:entry:1") == b"payload"

    def test_put_sets_ttl(self, cache: RedisCache, client: fakeredis.FakeRedis) -> None:
        """Values expire natively in Redis."""
        cache.put("cached:entries:entry:1", b"payload", 300)
        assert 0 < client.ttl("cached:entries:entry:1") <= 300

    def test_put_uses_current_set_api(self, cache: RedisCache) -> None:
        """Writing with a TTL avoids the deprecated SETEX call."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            cache.put("cached:entries:entry:1", b"payload", 300, ["entries"])
        assert not [w for w in caught if "setex" in str(w.message).lower()]

    def test_put_without_ttl(self, cache: RedisCache, client: fakeredis.FakeRedis) -> None:
        cache.put("cached:entries:entry:1", b"payload", None)
        assert client.ttl("cached:entries:entry:1") == -1

    def test_forget(self, cache: RedisCache) -> None:
        cache.put("cached:a", b"1", 60)
        cache.forget("cached:a")
        assert cache.get("cached:a") is MISS

    def test_flush_only_touches_prefix(
        self, cache: RedisCache, client: fakeredis.FakeRedis
    ) -> None:
        """Flush leaves keys of other applications alone."""
        cache.put("cached:a", b"1", 60, ["entries"])
        client.set("sessions:abc", b"keep")

        cache.flush()

        assert cache.get("cached:a") is MISS
        assert client.exists("cached:tag:entries") == 0
        assert client.get("sessions:abc") == b"keep"

    def test_health_check(self, cache: RedisCache) -> None:
        assert cache.health_check() is True

    def test_name(self, cache: RedisCache) -> None:
        assert cache.name == "RedisCache"


class TestRedisTags:
    """Test sorted-set backed tags."""

    def test_supports_tags(self, cache: RedisCache) -> None:
        assert cache.supports_tags() is True

    def test_put_indexes_key_under_tags(
        self, cache: RedisCache, client: fakeredis.FakeRedis
    ) -> None:
        cache.put("cached:entries:entry:1", b"1", 60, ["entries", "entry:1"])
        assert client.zrange("cached:tag:entries", 0, -1) == [b"cached:entries:entry:1"]
        assert client.zrange("cached:tag:entry:1", 0, -1) == [b"cached:entries:entry:1"]

    def test_flush_tag(self, cache: RedisCache, client: fakeredis.FakeRedis) -> None:
        """Flushing a tag deletes its members and empties the tag set."""
        cache.put("cached:entries:entry:1", b"1", 60, ["collection:blog"])
        cache.put("cached:entries:entry:2", b"2", 60, ["collection:blog"])
        cache.put("cached:entries:entry:3", b"3", 60, ["collection:pages"])

        cache.flush_tag("collection:blog")

        assert cache.get("cached:entries:entry:1") is MISS
        assert cache.get("cached:entries:entry:2") is MISS
        assert cache.get("cached:entries:entry:3") == b"3"
        assert client.exists("cached:tag:collection:blog") == 0

    def test_put_during_flush_stays_reachable(
        self, cache: RedisCache, client: fakeredis.FakeRedis, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A key tagged between reading and deleting the members keeps its tag."""
        cache.put("cached:entries:entry:1", b"old", 60, ["entry:1"])
        read_members = client.zrange
        pending = [("cached:entries:ids:1", b"fresh")]

        def zrange_then_put(*args: object, **kwargs: object) -> object:
            members = read_members(*args, **kwargs)
            while pending:
                key, value = pending.pop()
                cache.put(key, value, 60, ["entry:1"])
            return members

        monkeypatch.setattr(client, "zrange", zrange_then_put)

        cache.flush_tag("entry:1")
        assert cache.get("cached:entries:entry:1") is MISS
        assert read_members("cached:tag:entry:1", 0, -1) == [b"cached:entries:ids:1"]

        cache.flush_tag("entry:1")
        assert cache.get("cached:entries:ids:1") is MISS

    def test_flush_unknown_tag(self, cache: RedisCache) -> None:
        cache.flush_tag("nothing")

    def test_expired_members_are_pruned(
        self, cache: RedisCache, client: fakeredis.FakeRedis
    ) -> None:
        """Members whose expiry has passed are dropped on the next write."""
        client.zadd("cached:tag:entries", {"cached:stale": 1.0})
        cache.put("cached:fresh", b"1", 60, ["entries"])
        assert client.zrange("cached:tag:entries", 0, -1) == [b"cached:fresh"]

    def test_plain_mode(self, client: fakeredis.FakeRedis) -> None:
        """Without tagging no tag sets are written and flush_tag is a no-op."""
        cache = RedisCache(client, prefix="cached", tagging=False)
        cache.put("cached:a", b"1", 60, ["entries"])
        cache.flush_tag("entries")

        assert cache.supports_tags() is False
        assert cache.get("cached:a") == b"1"
        assert client.exists("cached:tag:entries") == 0


class TestRedisErrors:
    """Test error wrapping."""

    @pytest.fixture
    def down(self) -> RedisCache:
        server = fakeredis.FakeServer()
        server.connected = False
        return RedisCache(fakeredis.FakeRedis(server=server))

    def test_get_error(self, down: RedisCache) -> None:
        with pytest.raises(CacheBackendError):
            down.get("cached:a")

    def test_put_error(self, down: RedisCache) -> None:
        with pytest.raises(CacheBackendError):
            down.put("cached:a", b"1", 60, ["entries"])

    def test_forget_error(self, down: RedisCache) -> None:
        with pytest.raises(CacheBackendError):
            down.forget("cached:a")

    def test_flush_tag_error(self, down: RedisCache) -> None:
        with pytest.raises(CacheBackendError):
            down.flush_tag("entries")

    def test_health_check_fails(self, down: RedisCache) -> None:
        assert down.health_check() is False
