"""Caching repository for entries.

Entries change more often than the other classes, so they get a short TTL
and the richest tagging: every cached read carries the tags of the entries
it returned so that saving any of them drops the read.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

from tagcache.cache.invalidation import EntryInvalidator
from tagcache.cache.keys import DEFAULT_SITE, Tags
from tagcache.cache.policy import EntityClass
from tagcache.models import Entry
from tagcache.repositories.base import CachingRepository

if TYPE_CHECKING:
    from tagcache.cache.engine import CacheAsideEngine


class EntryStore(Protocol):
    """Accessor contract of the host's entry repository."""

    def find(self, entry_id: str) -> Entry | None: ...

    def find_by_uri(self, uri: str, site: str | None = None) -> Entry | None: ...

    def where_in_id(self, ids: Sequence[str]) -> list[Entry]: ...

    def save(self, entry: Entry) -> None: ...

    def delete(self, entry: Entry) -> None: ...

    def update_uris(self, collection: str, ids: Sequence[str] | None = None) -> None: ...


class CachedEntryRepository(CachingRepository[EntryStore]):
    """Entry repository with cache-aside reads and write invalidation."""

    entity = EntityClass.ENTRIES
    model = Entry

    def __init__(
        self,
        store: EntryStore,
        engine: CacheAsideEngine,
        invalidator: EntryInvalidator | None = None,
    ):
        super().__init__(store, engine)
        self.invalidator = invalidator if invalidator is not None else EntryInvalidator(engine)

    def _tags_for(self, entries: Iterable[Entry | None], *extra: str) -> list[str]:
        tags = [Tags.ENTRIES, *extra]
        for entry in entries:
            if entry is not None:
                tags.extend(self.invalidator.entry_tags(entry))
        return list(dict.fromkeys(tags))

    def _cacheable(self, entries: Iterable[Entry | None]) -> bool:
        # Exclusion is per collection, known only once the entries are loaded
        return not any(e is not None and self.is_excluded(e.collection) for e in entries)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find(self, entry_id: str) -> Entry | None:
        return self.engine.read_through(
            self.entity,
            "entry",
            [entry_id],
            lambda: self.store.find(entry_id),
            tags=lambda entry: self._tags_for([entry], Tags.entry(entry_id)),
            codec=self.codec,
            store_if=lambda entry: self._cacheable([entry]),
        )

    def find_by_uri(self, uri: str, site: str | None = None) -> Entry | None:
        """Cached URI lookup.

        Tagged with "uris" so any entry mutation, slug change or route change
        can drop every URI lookup at once.
        """
        return self.engine.read_through(
            self.entity,
            "uri",
            [uri, site or DEFAULT_SITE],
            lambda: self.store.find_by_uri(uri, site),
            tags=lambda entry: self._tags_for([entry], Tags.URIS),
            codec=self.codec,
            store_if=lambda entry: self._cacheable([entry]),
        )

    def where_in_id(self, ids: Sequence[str]) -> list[Entry]:
        """Cached id-list lookup (navigation, listings).

        Without tag support this shape cannot be invalidated exactly and
        relies on TTL expiry, or is not cached at all when the entries policy
        requires tags.
        """
        ids = list(ids)
        return self.engine.read_through(
            self.entity,
            "ids",
            ids,
            lambda: self.store.where_in_id(ids),
            tags=lambda entries: self._tags_for(entries, *(Tags.entry(i) for i in ids)),
            codec=self.codec,
            store_if=self._cacheable,
            hashed=True,
        )

    # -------------------------------------------------------------------------
    # Writes: the store write must succeed before anything is invalidated
    # -------------------------------------------------------------------------

    def save(self, entry: Entry) -> None:
        self.store.save(entry)
        self.invalidator.invalidate_entry(entry)

    def delete(self, entry: Entry) -> None:
        self.store.delete(entry)
        self.invalidator.invalidate_entry(entry)

    def update_uris(self, collection: str, ids: Sequence[str] | None = None) -> None:
        self.store.update_uris(collection, ids)
        self.invalidator.uris_updated(collection, ids)

    # -------------------------------------------------------------------------
    # Manual operations
    # -------------------------------------------------------------------------

    def clear_cache(self, entry_id: str) -> bool:
        return self.invalidator.clear_cache(entry_id)

    def clear_all_cache(self) -> bool:
        return self.invalidator.clear_all_cache()

    def clear_collection_cache(self, collection: str) -> bool:
        return self.invalidator.clear_collection_cache(collection)

    def clear_uri_cache(self) -> bool:
        return self.invalidator.clear_uri_cache()
