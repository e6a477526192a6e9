"""Caching repositories wrapping host CMS accessors."""

from tagcache.repositories.base import CachingRepository
from tagcache.repositories.entries import CachedEntryRepository, EntryStore
from tagcache.repositories.fieldsets import CachedFieldsetRepository, FieldsetStore
from tagcache.repositories.globals import (
    CachedGlobalVariablesRepository,
    GlobalVariablesStore,
)

__all__ = [
    "CachingRepository",
    "CachedEntryRepository",
    "EntryStore",
    "CachedGlobalVariablesRepository",
    "GlobalVariablesStore",
    "CachedFieldsetRepository",
    "FieldsetStore",
]
