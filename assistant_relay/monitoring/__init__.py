"""
Monitoring Module

Provides Prometheus metrics for the relay.
"""

from assistant_relay.monitoring.metrics import Metrics, get_metrics

__all__ = [
    "Metrics",
    "get_metrics",
]
