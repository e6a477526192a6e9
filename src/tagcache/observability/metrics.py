"""Prometheus metrics for the cache layer.

Counters are labelled by entity class (entries, globals, fieldsets):
- hits / misses of the read-through path
- bypasses (policy decided not to cache)
- invalidations (tags flushed or keys forgotten)
- backend errors swallowed by the engine

Usage:
    from tagcache.observability.metrics import record_cache_hit

    record_cache_hit("entries")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, generate_latest

from tagcache.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_bypass_total: Any = None
    cache_invalidations_total: Any = None
    cache_errors_total: Any = None

    enabled: bool = True

    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self, registry: CollectorRegistry | None = None) -> None:
        """Create the Prometheus collectors."""
        if self._initialized:
            return

        if not self.enabled:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = registry if registry is not None else REGISTRY

        self.cache_hits_total = Counter(
            "tagcache_cache_hits_total",
            "Read-through cache hits",
            ["entity"],
            registry=self._registry,
        )
        self.cache_misses_total = Counter(
            "tagcache_cache_misses_total",
            "Read-through cache misses",
            ["entity"],
            registry=self._registry,
        )
        self.cache_bypass_total = Counter(
            "tagcache_cache_bypass_total",
            "Reads served without consulting the cache",
            ["entity"],
            registry=self._registry,
        )
        self.cache_invalidations_total = Counter(
            "tagcache_cache_invalidations_total",
            "Tags flushed or keys forgotten",
            ["entity", "mode"],
            registry=self._registry,
        )
        self.cache_errors_total = Counter(
            "tagcache_cache_errors_total",
            "Cache backend failures swallowed by the engine",
            ["entity", "operation"],
            registry=self._registry,
        )

        self._initialized = True
        logger.debug("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not self.enabled or self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


metrics_registry = MetricsRegistry(enabled=settings.enable_metrics)


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def record_cache_hit(entity: str) -> None:
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(entity=entity).inc()


def record_cache_miss(entity: str) -> None:
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(entity=entity).inc()


def record_cache_bypass(entity: str) -> None:
    metrics = get_metrics()
    if metrics.cache_bypass_total:
        metrics.cache_bypass_total.labels(entity=entity).inc()


def record_invalidation(entity: str, mode: str, amount: int = 1) -> None:
    """Record invalidation work.

    Args:
        entity: Entity class the invalidation belongs to
        mode: "tag" for tag flushes, "key" for exact key removals
        amount: Number of backend operations performed
    """
    metrics = get_metrics()
    if metrics.cache_invalidations_total and amount:
        metrics.cache_invalidations_total.labels(entity=entity, mode=mode).inc(amount)


def record_cache_error(entity: str, operation: str) -> None:
    metrics = get_metrics()
    if metrics.cache_errors_total:
        metrics.cache_errors_total.labels(entity=entity, operation=operation).inc()
