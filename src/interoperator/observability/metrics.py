"""
Prometheus metrics for the interoperator.

This module provides metrics collection for monitoring the resource
engine: how many subordinate resources were created, updated, left
untouched or deleted, and how long each engine operation took.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: CollectorRegistry | None = None

RESOURCE_OPERATIONS_TOTAL = Counter(
    "interoperator_resource_operations_total",
    "Total number of operations issued against target cluster resources",
    ["kind", "operation", "result"],
    registry=None,  # Will be set during initialization
)

OPERATION_DURATION = Histogram(
    "interoperator_operation_duration_seconds",
    "Time spent in resource engine operations",
    ["operation", "result"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the global metrics registry."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()
        for metric in [RESOURCE_OPERATIONS_TOTAL, OPERATION_DURATION]:
            _metrics_registry.register(metric)

    return _metrics_registry


class MetricsCollector:
    """Collects and manages metrics for the resource engine."""

    def __init__(self):
        self.registry = get_metrics_registry()

    @contextmanager
    def track_operation(self, operation: str) -> Iterator[None]:
        """
        Context manager timing one engine operation.

        Args:
            operation: Operation name (reconcile_resources, compute_status, ...)
        """
        start_time = time.time()
        result = "success"
        try:
            yield
        except Exception:
            result = "error"
            raise
        finally:
            OPERATION_DURATION.labels(operation=operation, result=result).observe(
                time.time() - start_time
            )

    def record_resource_operation(
        self, kind: str, operation: str, success: bool = True
    ) -> None:
        """
        Count one create/update/unchanged/delete/graceful_delete call.

        Args:
            kind: Kind of the target resource
            operation: What was done to it
            success: Whether the call succeeded
        """
        RESOURCE_OPERATIONS_TOTAL.labels(
            kind=kind, operation=operation, result="success" if success else "error"
        ).inc()


# Global metrics collector instance
metrics_collector = MetricsCollector()
