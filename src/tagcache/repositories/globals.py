"""Caching repository for global variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from tagcache.cache.invalidation import GlobalsInvalidator
from tagcache.cache.policy import EntityClass
from tagcache.models import GlobalVariables
from tagcache.repositories.base import CachingRepository

if TYPE_CHECKING:
    from tagcache.cache.engine import CacheAsideEngine


class GlobalVariablesStore(Protocol):
    """Accessor contract of the host's global variables repository."""

    def where_set(self, handle: str) -> list[GlobalVariables]: ...

    def save(self, variables: GlobalVariables) -> None: ...

    def handles(self) -> list[str]: ...


class CachedGlobalVariablesRepository(CachingRepository[GlobalVariablesStore]):
    """Global variables per set handle, cached for a day by default.

    Handles on the exclusion list always hit the store.
    """

    entity = EntityClass.GLOBALS
    model = GlobalVariables

    def __init__(
        self,
        store: GlobalVariablesStore,
        engine: CacheAsideEngine,
        invalidator: GlobalsInvalidator | None = None,
    ):
        super().__init__(store, engine)
        self.invalidator = invalidator if invalidator is not None else GlobalsInvalidator(engine)

    def where_set(self, handle: str) -> list[GlobalVariables]:
        return self.engine.read_through(
            self.entity,
            "set",
            [handle],
            lambda: self.store.where_set(handle),
            tags=self.invalidator.set_tags(handle),
            identifier=handle,
            codec=self.codec,
        )

    def save(self, variables: GlobalVariables) -> None:
        self.store.save(variables)
        if not self.is_excluded(variables.handle):
            self.invalidator.clear_cache(variables.handle)

    def clear_cache(self, handle: str) -> bool:
        return self.invalidator.clear_cache(handle)

    def clear_all_cache(self) -> bool:
        if self.engine.tags_supported:
            return self.invalidator.clear_all_cache()
        return self.invalidator.clear_all_cache(self.store.handles())
