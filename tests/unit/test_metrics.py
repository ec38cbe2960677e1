"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from takaro_operator.metrics import (
    api_call_duration_seconds,
    api_call_total,
    drift_detected_total,
    error_total,
    queue_depth,
    rate_limit_hits_total,
    reconcile_duration_seconds,
    reconcile_total,
    requeue_total,
    watch_restarts_total,
)


class TestMetricsExist:
    """Test that all expected metrics are defined."""

    def test_counter_names(self):
        """Test counter names."""
        # Prometheus counters don't include "_total" in their _name attribute
        assert reconcile_total._name == "takaro_operator_reconcile"
        assert error_total._name == "takaro_operator_error"
        assert drift_detected_total._name == "takaro_operator_drift_detected"
        assert api_call_total._name == "takaro_operator_api_call"
        assert rate_limit_hits_total._name == "takaro_operator_rate_limit_hits"
        assert requeue_total._name == "takaro_operator_requeue"
        assert watch_restarts_total._name == "takaro_operator_watch_restarts"

    def test_histogram_and_gauge_names(self):
        """Test histogram and gauge names."""
        assert reconcile_duration_seconds._name == "takaro_operator_reconcile_duration_seconds"
        assert api_call_duration_seconds._name == "takaro_operator_api_call_duration_seconds"
        assert queue_depth._name == "takaro_operator_queue_depth"


class TestMetricsLabels:
    """Test that metrics accept their labels."""

    def test_reconcile_total_increments(self):
        """Test incrementing reconcile_total."""
        before = REGISTRY.get_sample_value(
            "takaro_operator_reconcile_total", {"kind": "MetricsTest", "result": "success"}
        ) or 0.0

        reconcile_total.labels(kind="MetricsTest", result="success").inc()

        after = REGISTRY.get_sample_value(
            "takaro_operator_reconcile_total", {"kind": "MetricsTest", "result": "success"}
        )
        assert after == before + 1

    def test_queue_depth_set(self):
        """Test setting the queue depth gauge."""
        queue_depth.labels(controller="metrics-test").set(3)

        assert REGISTRY.get_sample_value("takaro_operator_queue_depth", {"controller": "metrics-test"}) == 3.0

    def test_api_call_labels(self):
        """Test api call metric labels."""
        api_call_total.labels(api_type="takaro", operation="get_domain", result="success").inc()
        api_call_duration_seconds.labels(api_type="takaro", operation="get_domain").observe(0.2)

        assert REGISTRY.get_sample_value(
            "takaro_operator_api_call_duration_seconds_count",
            {"api_type": "takaro", "operation": "get_domain"},
        ) >= 1.0
