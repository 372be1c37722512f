"""
Observability package - structured logging and metrics for the interoperator.
"""

from .logging import OperatorLogger, configure_logging, setup_structured_logging
from .metrics import MetricsCollector, metrics_collector

__all__ = [
    "OperatorLogger",
    "setup_structured_logging",
    "configure_logging",
    "MetricsCollector",
    "metrics_collector",
]
