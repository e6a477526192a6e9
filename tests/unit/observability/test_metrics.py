"""Tests for cache metrics."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY, CollectorRegistry

from tagcache.observability.metrics import (
    MetricsRegistry,
    metrics_registry,
    record_cache_hit,
    record_invalidation,
)


class TestMetricsRegistry:
    """Test collector setup."""

    def test_initialize_creates_collectors(self) -> None:
        registry = CollectorRegistry()
        metrics = MetricsRegistry()
        metrics.initialize(registry)

        metrics.cache_hits_total.labels(entity="entries").inc()
        metrics.cache_errors_total.labels(entity="entries", operation="put").inc()

        assert registry.get_sample_value("tagcache_cache_hits_total", {"entity": "entries"}) == 1.0
        assert (
            registry.get_sample_value(
                "tagcache_cache_errors_total", {"entity": "entries", "operation": "put"}
            )
            == 1.0
        )

    def test_initialize_is_idempotent(self) -> None:
        registry = CollectorRegistry()
        metrics = MetricsRegistry()
        metrics.initialize(registry)
        hits = metrics.cache_hits_total
        metrics.initialize(registry)
        assert metrics.cache_hits_total is hits

    def test_exposition(self) -> None:
        metrics = MetricsRegistry()
        metrics.initialize(CollectorRegistry())
        metrics.cache_misses_total.labels(entity="globals").inc()
        assert b"tagcache_cache_misses_total" in metrics.generate_latest()

    def test_disabled(self) -> None:
        metrics = MetricsRegistry(enabled=False)
        metrics.initialize(CollectorRegistry())
        assert metrics.cache_hits_total is None
        assert metrics.generate_latest() == b"# Metrics disabled\n"


@pytest.mark.skipif(not metrics_registry.enabled, reason="metrics disabled by environment")
class TestRecorders:
    """Test the module level recorders against the default registry."""

    @staticmethod
    def sample(name: str, labels: dict[str, str]) -> float:
        return REGISTRY.get_sample_value(name, labels) or 0.0

    def test_record_cache_hit(self) -> None:
        labels = {"entity": "fieldsets"}
        before = self.sample("tagcache_cache_hits_total", labels)
        record_cache_hit("fieldsets")
        assert self.sample("tagcache_cache_hits_total", labels) == before + 1

    def test_record_invalidation_amount(self) -> None:
        labels = {"entity": "entries", "mode": "tag"}
        before = self.sample("tagcache_cache_invalidations_total", labels)
        record_invalidation("entries", "tag", 3)
        record_invalidation("entries", "tag", 0)
        assert self.sample("tagcache_cache_invalidations_total", labels) == before + 3
