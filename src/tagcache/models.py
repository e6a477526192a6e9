"""Host CMS records as seen by the cache layer.

Only the fields the cache needs to derive keys and tags are required; the
record payload travels in ``data``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Entry(BaseModel):
    """A content entry belonging to a collection."""

    id: str
    collection: str
    slug: str | None = None
    uri: str | None = None
    site: str | None = None
    published: bool = True
    data: dict[str, Any] = Field(default_factory=dict)


class GlobalVariables(BaseModel):
    """Localized variables of a global set."""

    handle: str
    site: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class Fieldset(BaseModel):
    """A reusable group of blueprint fields."""

    handle: str
    title: str | None = None
    fields: list[dict[str, Any]] = Field(default_factory=list)
