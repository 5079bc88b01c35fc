"""
Metrics package for auval.

Provides Prometheus metrics for authorization decisions and fetchers.
"""

from .collector import MetricConfig, MetricsCollector

__all__ = [
    'MetricConfig',
    'MetricsCollector',
]
