"""Wiring for the cache layer.

Builds the backend, policies, engine and invalidators from settings once,
wraps the host's accessors, and registers invalidation on an event bus.

Usage:
    provider = CacheProvider.from_settings(settings)
    entries = provider.wrap_entries(host_entry_repository)
    provider.register(host_bus)

    # Administrative helpers
    provider.clear_collection_cache("blog")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tagcache.cache.backend import CacheBackend, InMemoryCache, TagSupport
from tagcache.cache.engine import CacheAsideEngine
from tagcache.cache.invalidation import (
    EntryInvalidator,
    FieldsetInvalidator,
    GlobalsInvalidator,
    InvalidationTrigger,
)
from tagcache.cache.keys import CacheKeys
from tagcache.cache.policy import PolicyResolver, policies_from_settings
from tagcache.cache.redis import RedisCache, get_redis
from tagcache.events.bus import LocalEventBus
from tagcache.repositories import (
    CachedEntryRepository,
    CachedFieldsetRepository,
    CachedGlobalVariablesRepository,
)

if TYPE_CHECKING:
    from tagcache.config import Settings
    from tagcache.events.bus import EventBus
    from tagcache.repositories import EntryStore, FieldsetStore, GlobalVariablesStore

logger = logging.getLogger(__name__)

BACKENDS = ("redis", "redis-plain", "memory")


def build_backend(settings: Settings) -> CacheBackend:
    """Create the cache backend selected by settings.cache_backend."""
    kind = settings.cache_backend.lower()
    if kind == "redis":
        return RedisCache(get_redis(), prefix=settings.cache_prefix, tagging=True)
    if kind == "redis-plain":
        return RedisCache(get_redis(), prefix=settings.cache_prefix, tagging=False)
    if kind == "memory":
        return InMemoryCache(tagging=True)
    raise ValueError(
        f"Unknown cache backend {settings.cache_backend!r}, expected one of {BACKENDS}"
    )


class CacheProvider:
    """Owns the engine and the per-class invalidators."""

    def __init__(
        self,
        engine: CacheAsideEngine,
        sites: tuple[str, ...] = (),
        flush_uris_on_change: bool = True,
        bus: EventBus | None = None,
    ):
        self.engine = engine
        self.entries = EntryInvalidator(engine, sites, flush_uris_on_change)
        self.globals = GlobalsInvalidator(engine)
        self.fieldsets = FieldsetInvalidator(engine)
        self.trigger = InvalidationTrigger(self.entries, self.globals, self.fieldsets)
        self.bus = bus if bus is not None else LocalEventBus()
        self.trigger.register(self.bus)
        self._global_store: GlobalVariablesStore | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        backend: CacheBackend | None = None,
        bus: EventBus | None = None,
    ) -> CacheProvider:
        backend = backend if backend is not None else build_backend(settings)
        resolver = PolicyResolver(policies_from_settings(settings), TagSupport.of(backend))
        engine = CacheAsideEngine(backend, resolver, CacheKeys(settings.cache_prefix))
        logger.info(f"Cache provider ready with backend {backend.name}")
        return cls(
            engine,
            sites=tuple(settings.sites),
            flush_uris_on_change=settings.entries_flush_uris,
            bus=bus,
        )

    def register(self, bus: EventBus) -> None:
        """Also listen on a host-provided bus."""
        self.trigger.register(bus)

    # -------------------------------------------------------------------------
    # Repository wrapping
    # -------------------------------------------------------------------------

    def wrap_entries(self, store: EntryStore) -> CachedEntryRepository:
        return CachedEntryRepository(store, self.engine, self.entries)

    def wrap_globals(self, store: GlobalVariablesStore) -> CachedGlobalVariablesRepository:
        self._global_store = store
        return CachedGlobalVariablesRepository(store, self.engine, self.globals)

    def wrap_fieldsets(self, store: FieldsetStore) -> CachedFieldsetRepository:
        return CachedFieldsetRepository(store, self.engine, self.fieldsets)

    # -------------------------------------------------------------------------
    # Manual helpers
    # -------------------------------------------------------------------------
    # Each returns True when every backend call succeeded.

    def clear_global_cache(self, handle: str) -> bool:
        return self.globals.clear_cache(handle)

    def clear_all_global_cache(self) -> bool:
        """Clear every global set.

        Without tag support the keys are rebuilt from the wrapped store; with
        no wrapped store nothing can be cleared and False is returned.
        """
        handles = None
        if not self.engine.tags_supported and self._global_store is not None:
            handles = self._global_store.handles()
        return self.globals.clear_all_cache(handles)

    def clear_entry_cache(self, entry_id: str) -> bool:
        return self.entries.clear_cache(entry_id)

    def clear_collection_cache(self, collection: str) -> bool:
        return self.entries.clear_collection_cache(collection)

    def clear_all_entry_cache(self) -> bool:
        return self.entries.clear_all_cache()

    def clear_uri_cache(self) -> bool:
        return self.entries.clear_uri_cache()

    def clear_fieldset_cache(self, handle: str) -> bool:
        return self.fieldsets.clear_cache(handle)

    def clear_all_fieldset_cache(self) -> bool:
        return self.fieldsets.clear_all_cache()

    def flush_everything(self) -> bool:
        """Drop the whole cache namespace. Only ever invoked explicitly."""
        return self.engine.flush_everything()
