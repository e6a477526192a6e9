"""Global pytest configuration and fixtures.

Provides in-memory stand-ins for the host CMS accessors and helpers to build
engines over the in-memory backend.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence

import pytest

from tagcache.cache.backend import CacheBackend, InMemoryCache, TagSupport
from tagcache.cache.engine import CacheAsideEngine
from tagcache.cache.keys import DEFAULT_SITE, CacheKeys
from tagcache.cache.policy import CachePolicy, EntityClass, PolicyResolver
from tagcache.models import Entry, Fieldset, GlobalVariables


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEntryStore:
    """Entry accessor backed by a dict; counts every call."""

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self.entries = {entry.id: entry for entry in entries}
        self.calls: Counter[str] = Counter()
        self.fail_writes = False

    def find(self, entry_id: str) -> Entry | None:
        self.calls["find"] += 1
        return self.entries.get(entry_id)

    def find_by_uri(self, uri: str, site: str | None = None) -> Entry | None:
        self.calls["find_by_uri"] += 1
        for entry in self.entries.values():
            if entry.uri == uri and (entry.site or DEFAULT_SITE) == (site or DEFAULT_SITE):
                return entry
        return None

    def where_in_id(self, ids: Sequence[str]) -> list[Entry]:
        self.calls["where_in_id"] += 1
        return [self.entries[i] for i in ids if i in self.entries]

    def save(self, entry: Entry) -> None:
        self.calls["save"] += 1
        if self.fail_writes:
            raise RuntimeError("database unavailable")
        self.entries[entry.id] = entry

    def delete(self, entry: Entry) -> None:
        self.calls["delete"] += 1
        if self.fail_writes:
            raise RuntimeError("database unavailable")
        self.entries.pop(entry.id, None)

    def update_uris(self, collection: str, ids: Sequence[str] | None = None) -> None:
        self.calls["update_uris"] += 1

    def count(self) -> int:
        return len(self.entries)


class FakeGlobalStore:
    """Global variables accessor backed by a dict; counts every call."""

    def __init__(self, variables: Iterable[GlobalVariables] = ()) -> None:
        self.variables: dict[str, list[GlobalVariables]] = {}
        for item in variables:
            self.variables.setdefault(item.handle, []).append(item)
        self.calls: Counter[str] = Counter()
        self.fail_writes = False

    def where_set(self, handle: str) -> list[GlobalVariables]:
        self.calls["where_set"] += 1
        return list(self.variables.get(handle, []))

    def save(self, variables: GlobalVariables) -> None:
        self.calls["save"] += 1
        if self.fail_writes:
            raise RuntimeError("database unavailable")
        existing = [v for v in self.variables.get(variables.handle, []) if v.site != variables.site]
        self.variables[variables.handle] = [*existing, variables]

    def handles(self) -> list[str]:
        self.calls["handles"] += 1
        return list(self.variables)


class FakeFieldsetStore:
    """Fieldset accessor backed by a dict; counts every call."""

    def __init__(self, fieldsets: Iterable[Fieldset] = ()) -> None:
        self.fieldsets = {fieldset.handle: fieldset for fieldset in fieldsets}
        self.calls: Counter[str] = Counter()
        self.fail_writes = False

    def all(self) -> list[Fieldset]:
        self.calls["all"] += 1
        return list(self.fieldsets.values())

    def find(self, handle: str) -> Fieldset | None:
        self.calls["find"] += 1
        return self.fieldsets.get(handle)

    def save(self, fieldset: Fieldset) -> None:
        self.calls["save"] += 1
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.fieldsets[fieldset.handle] = fieldset

    def delete(self, fieldset: Fieldset) -> None:
        self.calls["delete"] += 1
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.fieldsets.pop(fieldset.handle, None)


EngineFactory = Callable[..., CacheAsideEngine]


def build_engine(
    backend: CacheBackend | None = None,
    policies: Mapping[EntityClass, CachePolicy] | None = None,
    tag_support: TagSupport | None = None,
    prefix: str = "cached",
) -> CacheAsideEngine:
    backend = backend if backend is not None else InMemoryCache()
    if tag_support is None:
        tag_support = TagSupport.of(backend)
    resolver = PolicyResolver(policies or {}, tag_support)
    return CacheAsideEngine(backend, resolver, CacheKeys(prefix))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock: FakeClock) -> InMemoryCache:
    """Tag-capable in-memory backend."""
    return InMemoryCache(tagging=True, clock=clock)


@pytest.fixture
def plain_backend(clock: FakeClock) -> InMemoryCache:
    """Plain key/value in-memory backend without tags."""
    return InMemoryCache(tagging=False, clock=clock)


@pytest.fixture
def make_engine() -> EngineFactory:
    return build_engine


@pytest.fixture
def engine(backend: InMemoryCache) -> CacheAsideEngine:
    return build_engine(backend)


@pytest.fixture
def plain_engine(plain_backend: InMemoryCache) -> CacheAsideEngine:
    return build_engine(plain_backend)


@pytest.fixture
def blog_entry() -> Entry:
    return Entry(
        id="1",
        collection="blog",
        slug="hello",
        uri="/blog/hello",
        data={"title": "Hello"},
    )


@pytest.fixture
def draft_entry() -> Entry:
    return Entry(id="9", collection="drafts", slug="wip", uri="/drafts/wip", published=False)


@pytest.fixture
def entry_store(blog_entry: Entry, draft_entry: Entry) -> FakeEntryStore:
    return FakeEntryStore(
        [
            blog_entry,
            draft_entry,
            Entry(id="2", collection="blog", slug="second", uri="/blog/second"),
            Entry(id="3", collection="pages", slug="about", uri="/about"),
        ]
    )


@pytest.fixture
def global_store() -> FakeGlobalStore:
    return FakeGlobalStore(
        [
            GlobalVariables(handle="footer", data={"copyright": "2026"}),
            GlobalVariables(handle="seo", data={"title": "Site"}),
            GlobalVariables(handle="live", data={"ticker": 1}),
        ]
    )


@pytest.fixture
def fieldset_store() -> FakeFieldsetStore:
    return FakeFieldsetStore(
        [
            Fieldset(handle="seo", title="SEO", fields=[{"handle": "meta_title"}]),
            Fieldset(handle="hero", title="Hero", fields=[{"handle": "image"}]),
        ]
    )
