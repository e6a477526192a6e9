"""Event schemas for record mutations.

The host publishes these after a write has been committed. Each event carries
enough identifying data (id, collection, handle) to compute the tags and keys
to invalidate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from tagcache.models import Entry


def _event_id() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class EntrySaved:
    """An entry was created or updated."""

    entry: Entry
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class EntryDeleted:
    """An entry was deleted."""

    entry: Entry
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class UrisUpdated:
    """URIs of a collection (or some of its entries) were recomputed."""

    collection: str
    ids: tuple[str, ...] | None = None
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class GlobalSetSaved:
    """A global set definition was saved."""

    handle: str
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class GlobalVariablesSaved:
    """Variables of a global set were saved for a site."""

    handle: str
    site: str | None = None
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class FieldsetSaved:
    """A fieldset was saved."""

    handle: str
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class FieldsetDeleted:
    """A fieldset was deleted."""

    handle: str
    event_id: str = field(default_factory=_event_id)
    timestamp: datetime = field(default_factory=_now)


# Union type for all events
AnyEvent = (
    EntrySaved
    | EntryDeleted
    | UrisUpdated
    | GlobalSetSaved
    | GlobalVariablesSaved
    | FieldsetSaved
    | FieldsetDeleted
)
