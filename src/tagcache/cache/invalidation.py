"""Cache invalidation for record mutations.

Each invalidator knows which tags and exact keys a mutation of its entity
class touches, and exposes the manual clear operations used by admins.
InvalidationTrigger maps mutation events onto the invalidators.

Example:
    trigger = InvalidationTrigger(entries, globals_, fieldsets)
    trigger.register(bus)

    # The host reports a committed write
    bus.publish(EntrySaved(entry))

Nothing here raises into the mutation path: a failed invalidation is logged
and the stale value ages out with its TTL.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from tagcache.cache.keys import DEFAULT_SITE, Tags
from tagcache.cache.policy import EntityClass
from tagcache.events.schemas import (
    EntryDeleted,
    EntrySaved,
    FieldsetDeleted,
    FieldsetSaved,
    GlobalSetSaved,
    GlobalVariablesSaved,
    UrisUpdated,
)

if TYPE_CHECKING:
    from tagcache.cache.engine import CacheAsideEngine
    from tagcache.events.bus import EventBus
    from tagcache.models import Entry

logger = logging.getLogger(__name__)

E = TypeVar("E")


def _invalidate(
    engine: CacheAsideEngine,
    entity: EntityClass,
    tags: Iterable[str] = (),
    keys: Iterable[str] = (),
) -> bool:
    """Invalidate and report whether every backend operation succeeded."""
    tags = list(dict.fromkeys(tags))
    keys = list(dict.fromkeys(keys))
    expected = len(tags) if engine.tags_supported else len(keys)
    return engine.invalidate(entity, tags=tags, keys=keys) == expected


class EntryInvalidator:
    """Invalidation rules for entries.

    A mutated entry invalidates its own lookups (entry:<id>), its
    collection (collection:<name>) and, by default, every URI lookup (uris):
    a URI depends on slug and routing rules this call cannot see.

    Every operation returns True when all of its backend calls succeeded.
    """

    entity = EntityClass.ENTRIES

    def __init__(
        self,
        engine: CacheAsideEngine,
        sites: Iterable[str] = (),
        flush_uris_on_change: bool = True,
    ):
        self.engine = engine
        self.keys = engine.keys
        self.sites = tuple(sites)
        self.flush_uris_on_change = flush_uris_on_change

    def entry_tags(self, entry: Entry) -> list[str]:
        return [Tags.ENTRIES, Tags.collection(entry.collection), Tags.entry(entry.id)]

    def uri_keys(self, uri: str | None, site: str | None = None) -> list[str]:
        """Exact keys of a URI lookup across every known site."""
        if not uri:
            return []
        sites = dict.fromkeys([*self.sites, *([site] if site else []), DEFAULT_SITE])
        return [self.keys.entry_uri(uri, s) for s in sites]

    def invalidate_entry(self, entry: Entry) -> bool:
        tags = [Tags.collection(entry.collection), Tags.entry(entry.id)]
        if self.flush_uris_on_change:
            tags.append(Tags.URIS)

        keys = [
            self.keys.collection(entry.collection),
            self.keys.entry(entry.id),
            *self.uri_keys(entry.uri, entry.site),
        ]
        done = _invalidate(self.engine, self.entity, tags=tags, keys=keys)

        if not self.flush_uris_on_change and self.engine.tags_supported:
            # Lookups of this URI that resolved to another entry or to nothing
            for key in self.uri_keys(entry.uri, entry.site):
                done = self.engine.forget(self.entity, key) and done
        return done

    def uris_updated(self, collection: str, ids: Iterable[str] | None = None) -> bool:
        if self.engine.tags_supported:
            return self.engine.flush_tag(self.entity, Tags.URIS)
        # URI keys cannot be rebuilt here; drop the entries holding stale URIs
        keys = [self.keys.entry(i) for i in ids or ()]
        keys.append(self.keys.collection(collection))
        return _invalidate(self.engine, self.entity, keys=keys)

    # Manual operations

    def clear_cache(self, entry_id: str) -> bool:
        return _invalidate(
            self.engine,
            self.entity,
            tags=[Tags.entry(entry_id)],
            keys=[self.keys.entry(entry_id)],
        )

    def clear_all_cache(self) -> bool:
        if not self.engine.clear_class(self.entity):
            return False
        return self.engine.flush_tag(self.entity, Tags.URIS)

    def clear_collection_cache(self, collection: str) -> bool:
        logger.info(f"Clearing cache for collection {collection}")
        return _invalidate(
            self.engine,
            self.entity,
            tags=[Tags.collection(collection), Tags.URIS],
            keys=[self.keys.collection(collection)],
        )

    def clear_uri_cache(self) -> bool:
        if not self.engine.tags_supported:
            logger.warning("Cannot clear URI caches without tag support; entries expire by TTL")
            return False
        logger.info("Clearing all URI caches")
        return self.engine.flush_tag(self.entity, Tags.URIS)


class GlobalsInvalidator:
    """Invalidation rules for global variables."""

    entity = EntityClass.GLOBALS

    def __init__(self, engine: CacheAsideEngine):
        self.engine = engine
        self.keys = engine.keys

    def set_tags(self, handle: str) -> list[str]:
        return [Tags.GLOBALS, Tags.global_set(handle)]

    def clear_cache(self, handle: str) -> bool:
        return _invalidate(
            self.engine,
            self.entity,
            tags=[Tags.global_set(handle)],
            keys=[self.keys.global_set(handle)],
        )

    def clear_all_cache(self, handles: Iterable[str] | None = None) -> bool:
        """Clear every global set.

        Without tag support the exact keys are rebuilt from the given handles;
        excluded handles are never cached and are skipped. Returns False when
        the keys cannot be known or a backend call failed.
        """
        if self.engine.tags_supported:
            return self.engine.clear_class(self.entity)

        if handles is None:
            logger.warning("Cannot clear all global caches without tag support or handles")
            return False

        resolver = self.engine.resolver
        keys = [
            self.keys.global_set(handle)
            for handle in handles
            if not resolver.is_excluded(self.entity, handle)
        ]
        logger.info(f"Clearing {len(keys)} global set caches")
        return _invalidate(self.engine, self.entity, keys=keys)


class FieldsetInvalidator:
    """Invalidation rules for fieldsets.

    The cached listing of all fieldsets depends on every fieldset, so a
    mutation flushes the whole class.
    """

    entity = EntityClass.FIELDSETS

    def __init__(self, engine: CacheAsideEngine):
        self.engine = engine
        self.keys = engine.keys

    def fieldset_tags(self, handle: str) -> list[str]:
        return [Tags.FIELDSETS, Tags.fieldset(handle)]

    def invalidate_fieldset(self, handle: str) -> bool:
        return _invalidate(
            self.engine,
            self.entity,
            tags=[Tags.FIELDSETS],
            keys=[self.keys.fieldsets_all(), self.keys.fieldset(handle)],
        )

    def clear_cache(self, handle: str) -> bool:
        return _invalidate(
            self.engine,
            self.entity,
            tags=[Tags.fieldset(handle)],
            keys=[self.keys.fieldset(handle), self.keys.fieldsets_all()],
        )

    def clear_all_cache(self) -> bool:
        if self.engine.tags_supported:
            return self.engine.clear_class(self.entity)
        return self.engine.forget(self.entity, self.keys.fieldsets_all())


def _guarded(handler: Callable[[Any, E], None]) -> Callable[[Any, E], None]:
    """Log and swallow cache errors so they never reach the publisher."""

    @functools.wraps(handler)
    def wrapper(self: Any, event: E) -> None:
        try:
            handler(self, event)
        except Exception:
            logger.exception(f"Cache invalidation failed for {type(event).__name__}")

    return wrapper


class InvalidationTrigger:
    """Translates mutation events into invalidation calls.

    Handlers are idempotent: replaying an event only flushes the same tags
    or keys again.
    """

    def __init__(
        self,
        entries: EntryInvalidator,
        globals_: GlobalsInvalidator,
        fieldsets: FieldsetInvalidator,
    ):
        self.entries = entries
        self.globals = globals_
        self.fieldsets = fieldsets

    @_guarded
    def on_entry_saved(self, event: EntrySaved) -> None:
        self.entries.invalidate_entry(event.entry)

    @_guarded
    def on_entry_deleted(self, event: EntryDeleted) -> None:
        self.entries.invalidate_entry(event.entry)

    @_guarded
    def on_uris_updated(self, event: UrisUpdated) -> None:
        self.entries.uris_updated(event.collection, event.ids)

    @_guarded
    def on_global_set_saved(self, event: GlobalSetSaved) -> None:
        self.globals.clear_cache(event.handle)

    @_guarded
    def on_global_variables_saved(self, event: GlobalVariablesSaved) -> None:
        self.globals.clear_cache(event.handle)

    @_guarded
    def on_fieldset_saved(self, event: FieldsetSaved) -> None:
        self.fieldsets.invalidate_fieldset(event.handle)

    @_guarded
    def on_fieldset_deleted(self, event: FieldsetDeleted) -> None:
        self.fieldsets.invalidate_fieldset(event.handle)

    def register(self, bus: EventBus) -> None:
        """Subscribe every handler to its event type."""
        bus.subscribe(EntrySaved, self.on_entry_saved)
        bus.subscribe(EntryDeleted, self.on_entry_deleted)
        bus.subscribe(UrisUpdated, self.on_uris_updated)
        bus.subscribe(GlobalSetSaved, self.on_global_set_saved)
        bus.subscribe(GlobalVariablesSaved, self.on_global_variables_saved)
        bus.subscribe(FieldsetSaved, self.on_fieldset_saved)
        bus.subscribe(FieldsetDeleted, self.on_fieldset_deleted)
        logger.info("Registered cache invalidation handlers")

    def unregister(self, bus: EventBus) -> None:
        bus.unsubscribe(EntrySaved, self.on_entry_saved)
        bus.unsubscribe(EntryDeleted, self.on_entry_deleted)
        bus.unsubscribe(UrisUpdated, self.on_uris_updated)
        bus.unsubscribe(GlobalSetSaved, self.on_global_set_saved)
        bus.unsubscribe(GlobalVariablesSaved, self.on_global_variables_saved)
        bus.unsubscribe(FieldsetSaved, self.on_fieldset_saved)
        bus.unsubscribe(FieldsetDeleted, self.on_fieldset_deleted)
