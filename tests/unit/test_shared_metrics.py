"""
Unit tests for shared metrics.
"""

from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector, get_metrics_collector


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    def test_token_metrics(self, metrics):
        metrics.record_token_issued()
        metrics.record_verification("valid")
        metrics.record_verification("valid")
        metrics.record_verification("expired")

        assert metrics.registry.get_sample_value("tokens_issued_total") == 1.0
        assert metrics.registry.get_sample_value("token_verifications_total", {"outcome": "valid"}) == 2.0
        assert metrics.registry.get_sample_value("token_verifications_total", {"outcome": "expired"}) == 1.0

    def test_record_error(self, metrics):
        metrics.record_error("token_creation_failed")
        metrics.record_error("token_creation_failed", service="other")

        assert metrics.registry.get_sample_value(
            "errors_total", {"error_type": "token_creation_failed", "service": "token"}
        ) == 1.0
        assert metrics.registry.get_sample_value(
            "errors_total", {"error_type": "token_creation_failed", "service": "other"}
        ) == 1.0

    def test_service_info(self, metrics):
        assert metrics.registry.get_sample_value("service_info_info", {"service": "token", "version": "1.0.0"}) == 1.0

    def test_get_metric(self, metrics):
        assert metrics.get_metric("tokens_issued_total") is not None
        assert metrics.get_metric("unknown") is None


def test_get_metrics_collector_with_registry():
    registry = CollectorRegistry()

    collector = get_metrics_collector("token", registry)

    assert isinstance(collector, MetricsCollector)
    assert collector.registry is registry


def test_get_metrics_collector_default_registry_is_cached():
    assert get_metrics_collector("token") is get_metrics_collector("token")
