"""Observability module for tagcache.

Provides structured logging and Prometheus cache metrics:
- JSON / console log formatters with cache context
- Hit, miss, bypass, invalidation and error counters per entity class
"""

from tagcache.observability.logging import (
    LogContext,
    configure_logging,
    entity_var,
    operation_var,
)
from tagcache.observability.metrics import (
    MetricsRegistry,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "entity_var",
    "operation_var",
    # Metrics
    "MetricsRegistry",
    "get_metrics",
    "metrics_registry",
]
