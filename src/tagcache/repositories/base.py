"""Caching repository base.

A caching repository wraps any object satisfying an accessor protocol and
keeps its method signatures. Cached reads go through the engine; anything the
wrapper does not override is delegated to the store untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel

from tagcache.cache.codec import ModelCodec
from tagcache.cache.policy import EntityClass

if TYPE_CHECKING:
    from tagcache.cache.engine import CacheAsideEngine

StoreT = TypeVar("StoreT")


class CachingRepository(Generic[StoreT]):
    """Base caching repository composed around a store."""

    entity: EntityClass
    model: type[BaseModel]

    def __init__(self, store: StoreT, engine: CacheAsideEngine):
        self.store = store
        self.engine = engine
        self.keys = engine.keys
        self.codec = ModelCodec(self.model)

    def should_cache(self, identifier: str | None = None) -> bool:
        return self.engine.resolver.should_cache(self.entity, identifier)

    def is_excluded(self, identifier: str | None) -> bool:
        return self.engine.resolver.is_excluded(self.entity, identifier)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined on the wrapper
        if name == "store":
            raise AttributeError(name)
        return getattr(self.store, name)
