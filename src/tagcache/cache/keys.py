"""Cache key schema for tagcache.

Key format: {prefix}:{namespace}:{variant}:{discriminator}

Where:
- prefix: "cached" by default (namespace inside a shared Redis)
- namespace: "entries", "globals", "fieldsets" (one per entity class)
- variant: the cached shape, e.g. "entry", "uri", "ids", "set", "handle"
- discriminator: a handle verbatim, or a 128-bit BLAKE2b digest for compound
  or high-cardinality inputs (id lists, uri + site pairs)

Tags group keys for bulk invalidation: "entries", "uris",
"collection:{name}", "entry:{id}", "globals", "global:{handle}",
"fieldsets", "fieldset:{handle}".
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

DEFAULT_SITE = "default"


def digest(*parts: object) -> str:
    """Stable, order-sensitive 128-bit digest of the given parts.

    Each part is length-prefixed so ("ab", "c") and ("a", "bc") differ.
    """
    h = hashlib.blake2b(digest_size=16)
    for part in parts:
        raw = str(part).encode("utf-8")
        h.update(len(raw).to_bytes(8, "big"))
        h.update(raw)
    return h.hexdigest()


class CacheKeys:
    """Cache key generator following a consistent naming convention."""

    PREFIX = "cached"

    def __init__(self, prefix: str | None = None):
        self.prefix = prefix or self.PREFIX

    def key(
        self,
        namespace: str,
        variant: str,
        *discriminators: object,
        hashed: bool = False,
    ) -> str:
        """Build a key from logical identifiers.

        A single discriminator is kept verbatim unless hashed is set; more
        than one is always digested to keep keys bounded.
        """
        if not discriminators:
            return f"{self.prefix}:{namespace}:{variant}"
        if hashed or len(discriminators) > 1:
            part = digest(*discriminators)
        else:
            part = str(discriminators[0])
        return f"{self.prefix}:{namespace}:{variant}:{part}"

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def entry(self, entry_id: str) -> str:
        return self.key("entries", "entry", entry_id)

    def entry_uri(self, uri: str, site: str | None = None) -> str:
        return self.key("entries", "uri", uri, site or DEFAULT_SITE)

    def entry_ids(self, ids: Iterable[str]) -> str:
        """Key for an id-list lookup. Order of ids is significant."""
        return self.key("entries", "ids", *ids, hashed=True)

    def collection(self, name: str) -> str:
        return self.key("entries", "collection", name)

    # -------------------------------------------------------------------------
    # Globals
    # -------------------------------------------------------------------------

    def global_set(self, handle: str) -> str:
        return self.key("globals", "set", handle)

    # -------------------------------------------------------------------------
    # Fieldsets
    # -------------------------------------------------------------------------

    def fieldset(self, handle: str) -> str:
        return self.key("fieldsets", "handle", handle, hashed=True)

    def fieldsets_all(self) -> str:
        return self.key("fieldsets", "all")

    def parse_key(self, key: str) -> dict[str, str] | None:
        """Parse a cache key into its components.

        Returns None if the key doesn't match the expected format.
        """
        parts = key.split(":", 3)
        if len(parts) < 3 or parts[0] != self.prefix:
            return None

        return {
            "prefix": parts[0],
            "namespace": parts[1],
            "variant": parts[2],
            "discriminator": parts[3] if len(parts) > 3 else "",
        }


class Tags:
    """Invalidation tags."""

    ENTRIES = "entries"
    URIS = "uris"
    GLOBALS = "globals"
    FIELDSETS = "fieldsets"

    @staticmethod
    def collection(name: str) -> str:
        return f"collection:{name}"

    @staticmethod
    def entry(entry_id: str) -> str:
        return f"entry:{entry_id}"

    @staticmethod
    def global_set(handle: str) -> str:
        return f"global:{handle}"

    @staticmethod
    def fieldset(handle: str) -> str:
        return f"fieldset:{handle}"
