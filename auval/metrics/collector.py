"""
Prometheus metrics for policy evaluation.

Counts decisions per verdict and deciding rule, fetcher invocations and
failures, and observes evaluation latency.
"""

from dataclasses import dataclass
import logging

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from ..errors import FetchError
from ..policy.context import EvaluationTrace
from ..policy.types import AuthorizationResult


logger = logging.getLogger(__name__)


@dataclass
class MetricConfig:
    """Configuration for metrics collection."""

    namespace: str = "auval"
    buckets: tuple = (0.00005, 0.0001, 0.0002, 0.0005, 0.001, 0.002, 0.005, 0.01, 0.05, 0.1)


class MetricsCollector:
    """Metrics collector for authorize calls."""

    def __init__(self, config: MetricConfig = None):
        """
        Initialize metrics collector.

        Args:
            config: Metrics configuration
        """
        self.config = config or MetricConfig()
        self.registry = CollectorRegistry()
        ns = self.config.namespace

        self.decisions = Counter(
            f'{ns}_decisions_total',
            'Total number of authorization decisions',
            ['verdict', 'rule'],
            registry=self.registry
        )

        self.fetches = Counter(
            f'{ns}_fetches_total',
            'Total number of fetcher invocations',
            ['fetcher'],
            registry=self.registry
        )

        self.fetch_failures = Counter(
            f'{ns}_fetch_failures_total',
            'Total number of fetcher failures',
            ['fetcher'],
            registry=self.registry
        )

        self.evaluation_latency = Histogram(
            f'{ns}_evaluation_duration_seconds',
            'Authorize call duration in seconds',
            buckets=list(self.config.buckets),
            registry=self.registry
        )

        logger.info("Metrics collector initialized")

    def _record_trace(self, trace: EvaluationTrace) -> None:
        for fetcher_id in trace.fetchers_invoked:
            self.fetches.labels(fetcher=fetcher_id).inc()
        if trace.evaluation_time is not None:
            self.evaluation_latency.observe(trace.evaluation_time)

    def record_decision(self, result: AuthorizationResult, trace: EvaluationTrace) -> None:
        """Record a decided authorize call."""
        self.decisions.labels(verdict=result.verdict.value, rule=result.rule_id).inc()
        self._record_trace(trace)

    def record_fetch_failure(self, error: FetchError, trace: EvaluationTrace) -> None:
        """Record an authorize call aborted by a fetch failure."""
        self.fetch_failures.labels(fetcher=error.fetcher_id or "unknown").inc()
        self._record_trace(trace)

    def get_sample(self, name: str, labels: dict = None) -> float:
        """Current value of a sample in this collector's registry (0.0 if absent)."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def export(self) -> bytes:
        """Prometheus text exposition of this collector's registry."""
        return generate_latest(self.registry)
