"""Caching policy per entity class.

Policies are built once from settings and never change for the lifetime of
the process. The resolver answers two questions for the engine: should this
read be cached, and for how long.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from tagcache.config import split_csv

if TYPE_CHECKING:
    from tagcache.cache.backend import TagSupport
    from tagcache.config import Settings


class EntityClass(str, Enum):
    """Kind of cached record. The value doubles as key namespace and top tag."""

    ENTRIES = "entries"
    GLOBALS = "globals"
    FIELDSETS = "fieldsets"


DEFAULT_TTLS: Mapping[EntityClass, int] = MappingProxyType(
    {
        EntityClass.ENTRIES: 300,  # 5 minutes
        EntityClass.GLOBALS: 86400,  # 24 hours
        EntityClass.FIELDSETS: 86400,  # 24 hours
    }
)


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """Caching rules for one entity class."""

    enabled: bool = True
    ttl_seconds: int | None = None  # None -> class default
    exclusions: frozenset[str] = field(default_factory=frozenset)
    tags_required: bool = False

    @classmethod
    def build(
        cls,
        enabled: bool = True,
        ttl_seconds: int | None = None,
        exclusions: Iterable[str] | None = None,
        tags_required: bool = False,
    ) -> CachePolicy:
        return cls(
            enabled=enabled,
            ttl_seconds=ttl_seconds,
            exclusions=frozenset(exclusions or ()),
            tags_required=tags_required,
        )


class PolicyResolver:
    """Decides per call whether caching applies."""

    def __init__(
        self,
        policies: Mapping[EntityClass, CachePolicy],
        tag_support: TagSupport,
    ):
        self._policies = MappingProxyType(dict(policies))
        self.tag_support = tag_support

    def policy(self, entity: EntityClass) -> CachePolicy:
        return self._policies.get(entity, CachePolicy())

    def is_excluded(self, entity: EntityClass, identifier: str | None) -> bool:
        return identifier is not None and identifier in self.policy(entity).exclusions

    def tags_supported(self) -> bool:
        return self.tag_support.enabled

    def should_cache(self, entity: EntityClass, identifier: str | None = None) -> bool:
        """Apply the policy rules in order.

        1. Caching disabled for the class -> no.
        2. Identifier on the exclusion list -> no.
        3. Class requires tags and the backend has none -> no.
        """
        policy = self.policy(entity)
        if not policy.enabled:
            return False
        if self.is_excluded(entity, identifier):
            return False
        if policy.tags_required and not self.tags_supported():
            return False
        return True

    def ttl(self, entity: EntityClass) -> int:
        """Configured TTL, or the class default when unset."""
        configured = self.policy(entity).ttl_seconds
        if configured is None:
            return DEFAULT_TTLS[entity]
        return configured


def policies_from_settings(settings: Settings) -> dict[EntityClass, CachePolicy]:
    """Build the immutable policy map from configuration."""
    return {
        EntityClass.ENTRIES: CachePolicy.build(
            enabled=settings.entries_enabled,
            ttl_seconds=settings.entries_duration,
            exclusions=split_csv(settings.entries_exclude),
            tags_required=settings.entries_tagged_only,
        ),
        EntityClass.GLOBALS: CachePolicy.build(
            enabled=settings.globals_enabled,
            ttl_seconds=settings.globals_duration,
            exclusions=split_csv(settings.globals_exclude),
        ),
        EntityClass.FIELDSETS: CachePolicy.build(
            enabled=settings.fieldsets_enabled,
            ttl_seconds=settings.fieldsets_duration,
            exclusions=split_csv(settings.fieldsets_exclude),
        ),
    }
