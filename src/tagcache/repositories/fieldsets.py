"""Caching repository for fieldsets.

Fieldsets are read on nearly every blueprint render but change rarely, which
makes them ideal for a long TTL.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from tagcache.cache.invalidation import FieldsetInvalidator
from tagcache.cache.keys import Tags
from tagcache.cache.policy import EntityClass
from tagcache.models import Fieldset
from tagcache.repositories.base import CachingRepository

if TYPE_CHECKING:
    from tagcache.cache.engine import CacheAsideEngine


class FieldsetStore(Protocol):
    """Accessor contract of the host's fieldset repository."""

    def all(self) -> list[Fieldset]: ...

    def find(self, handle: str) -> Fieldset | None: ...

    def save(self, fieldset: Fieldset) -> None: ...

    def delete(self, fieldset: Fieldset) -> None: ...


class CachedFieldsetRepository(CachingRepository[FieldsetStore]):
    """Fieldset repository with cache-aside reads and write invalidation."""

    entity = EntityClass.FIELDSETS
    model = Fieldset

    def __init__(
        self,
        store: FieldsetStore,
        engine: CacheAsideEngine,
        invalidator: FieldsetInvalidator | None = None,
    ):
        super().__init__(store, engine)
        self.invalidator = invalidator if invalidator is not None else FieldsetInvalidator(engine)

    def all(self) -> list[Fieldset]:
        """All fieldsets, cached as one listing.

        The listing carries the tag of every fieldset in it, so clearing a
        single handle also drops the listing.
        """
        return self.engine.read_through(
            self.entity,
            "all",
            [],
            self.store.all,
            tags=lambda fieldsets: [
                Tags.FIELDSETS,
                *(Tags.fieldset(f.handle) for f in fieldsets),
            ],
            codec=self.codec,
            store_if=lambda fieldsets: not any(self.is_excluded(f.handle) for f in fieldsets),
        )

    def find(self, handle: str) -> Fieldset | None:
        return self.engine.read_through(
            self.entity,
            "handle",
            [handle],
            lambda: self.store.find(handle),
            tags=self.invalidator.fieldset_tags(handle),
            identifier=handle,
            codec=self.codec,
            hashed=True,
        )

    def save(self, fieldset: Fieldset) -> None:
        self.store.save(fieldset)
        self.invalidator.invalidate_fieldset(fieldset.handle)

    def delete(self, fieldset: Fieldset) -> None:
        self.store.delete(fieldset)
        self.invalidator.invalidate_fieldset(fieldset.handle)

    def clear_cache(self, handle: str) -> bool:
        return self.invalidator.clear_cache(handle)

    def clear_all_cache(self) -> bool:
        return self.invalidator.clear_all_cache()
