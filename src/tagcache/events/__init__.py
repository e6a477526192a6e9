"""Mutation events for tagcache.

Provides the observer API the host uses to report writes:
- Event schemas for entries, global sets and fieldsets
- LocalEventBus for synchronous in-process dispatch
"""

from tagcache.events.bus import EventBus, EventHandler, LocalEventBus
from tagcache.events.schemas import (
    AnyEvent,
    EntryDeleted,
    EntrySaved,
    FieldsetDeleted,
    FieldsetSaved,
    GlobalSetSaved,
    GlobalVariablesSaved,
    UrisUpdated,
)

__all__ = [
    # Bus
    "EventBus",
    "EventHandler",
    "LocalEventBus",
    # Schemas
    "AnyEvent",
    "EntrySaved",
    "EntryDeleted",
    "UrisUpdated",
    "GlobalSetSaved",
    "GlobalVariablesSaved",
    "FieldsetSaved",
    "FieldsetDeleted",
]
