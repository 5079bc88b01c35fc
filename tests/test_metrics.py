"""
Tests for Prometheus metrics collection.
"""

import pytest

from auval import ALL, ERR, OK, Failure, FetchError, FetcherDefinition, Policy, RuleDefinition
from auval.metrics import MetricConfig, MetricsCollector


@pytest.fixture
def metrics():
    return MetricsCollector()


class TestMetricsCollector:
    """Test decision and fetch counters."""

    def test_decisions_counted(self, metrics):
        """Decisions are counted per verdict and rule."""
        policy = Policy(
            rules=[
                RuleDefinition("no_writes", "write", body=lambda b: ERR),
                RuleDefinition("reads", "read", body=lambda b: OK),
            ],
            fetchers=[FetcherDefinition("tz", "timezone", body=lambda b: "UTC")],
            metrics=metrics
        )
        policy.authorize("s", "o", "read")
        policy.authorize("s", "o", "read")
        policy.authorize("s", "o", "write")
        policy.authorize("s", "o", "delete")

        assert metrics.get_sample("auval_decisions_total", {"verdict": "allow", "rule": "reads"}) == 2.0
        assert metrics.get_sample("auval_decisions_total", {"verdict": "deny", "rule": "no_writes"}) == 1.0
        assert metrics.get_sample("auval_decisions_total", {"verdict": "deny", "rule": "default_deny"}) == 1.0
        assert metrics.get_sample("auval_fetches_total", {"fetcher": "tz"}) == 4.0
        assert metrics.get_sample("auval_evaluation_duration_seconds_count") == 4.0

    def test_presupplied_attribute_not_fetched(self, metrics):
        """Skipped fetchers are not counted."""
        policy = Policy(fetchers=[FetcherDefinition("tz", "timezone", body=lambda b: "UTC")], metrics=metrics)
        policy.authorize("s", "o", "read", {"timezone": "CET"})
        assert metrics.get_sample("auval_fetches_total", {"fetcher": "tz"}) == 0.0

    def test_fetch_failures_counted(self, metrics):
        """Failed fetches are counted and no decision is recorded."""
        policy = Policy(
            rules=[RuleDefinition("r", ALL, body=lambda b: OK)],
            fetchers=[FetcherDefinition("groups", "groups", body=lambda b: Failure("down"))],
            metrics=metrics
        )
        with pytest.raises(FetchError):
            policy.authorize("s", "o", "read")

        assert metrics.get_sample("auval_fetch_failures_total", {"fetcher": "groups"}) == 1.0
        assert metrics.get_sample("auval_decisions_total", {"verdict": "allow", "rule": "r"}) == 0.0

    def test_namespace_and_export(self):
        """Metric names follow the namespace and appear in the exposition."""
        metrics = MetricsCollector(MetricConfig(namespace="docs"))
        Policy(metrics=metrics).authorize("s", "o", "read")

        exported = metrics.export().decode("utf-8")
        assert "docs_decisions_total" in exported
        assert "docs_evaluation_duration_seconds" in exported

    def test_collectors_are_independent(self):
        """Each collector owns its registry."""
        first, second = MetricsCollector(), MetricsCollector()
        Policy(metrics=first).authorize("s", "o", "read")
        labels = {"verdict": "deny", "rule": "default_deny"}
        assert first.get_sample("auval_decisions_total", labels) == 1.0
        assert second.get_sample("auval_decisions_total", labels) == 0.0
