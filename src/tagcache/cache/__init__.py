"""Cache layer for tagcache.

Provides cache-aside reads with tag-based invalidation:
- Pluggable backends (Redis with or without tags, in-process memory)
- Deterministic key derivation per entity class
- Immutable caching policy per entity class
- Event-driven invalidation that never fails the write path
"""

from tagcache.cache.backend import (
    MISS,
    CacheBackend,
    CacheBackendError,
    InMemoryCache,
    TagSupport,
)
from tagcache.cache.codec import JSON, JsonCodec, ModelCodec
from tagcache.cache.engine import CacheAsideEngine
from tagcache.cache.invalidation import (
    EntryInvalidator,
    FieldsetInvalidator,
    GlobalsInvalidator,
    InvalidationTrigger,
)
from tagcache.cache.keys import CacheKeys, Tags
from tagcache.cache.policy import (
    DEFAULT_TTLS,
    CachePolicy,
    EntityClass,
    PolicyResolver,
    policies_from_settings,
)
from tagcache.cache.redis import RedisCache, close_redis, get_redis

__all__ = [
    # Backends
    "MISS",
    "CacheBackend",
    "CacheBackendError",
    "InMemoryCache",
    "RedisCache",
    "TagSupport",
    "get_redis",
    "close_redis",
    # Codecs
    "JSON",
    "JsonCodec",
    "ModelCodec",
    # Keys and policy
    "CacheKeys",
    "Tags",
    "DEFAULT_TTLS",
    "CachePolicy",
    "EntityClass",
    "PolicyResolver",
    "policies_from_settings",
    # Engine and invalidation
    "CacheAsideEngine",
    "EntryInvalidator",
    "GlobalsInvalidator",
    "FieldsetInvalidator",
    "InvalidationTrigger",
]
