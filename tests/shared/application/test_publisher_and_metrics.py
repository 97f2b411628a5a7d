"""Tests for the event publisher and metrics sink adapters."""

import pytest
from shared.events.ordering import TOPIC
from shared.metrics import get_metrics, reset_metrics, set_metrics
from shared.metrics.log_adapter import LogMetrics
from shared.metrics.memory_adapter import InMemoryMetrics
from shared.publisher import get_publisher, reset_publisher, set_publisher
from shared.publisher.memory_adapter import InMemoryPublisher
from structlog.testing import capture_logs


class TestInMemoryPublisher:
    def test_events_for_topic(self):
        publisher = InMemoryPublisher()
        publisher.publish(TOPIC, "first")
        publisher.publish("other", "second")
        assert publisher.events_for(TOPIC) == ["first"]

    def test_configured_failure(self):
        publisher = InMemoryPublisher()
        publisher.configure(should_succeed=False)
        with pytest.raises(ConnectionError):
            publisher.publish(TOPIC, "event")

    def test_factory(self, monkeypatch):
        monkeypatch.delenv("EVENT_PUBLISHER", raising=False)
        reset_publisher()
        assert isinstance(get_publisher(), InMemoryPublisher)
        publisher = InMemoryPublisher()
        set_publisher(publisher)
        assert get_publisher() is publisher

    def test_unknown_publisher(self, monkeypatch):
        monkeypatch.setenv("EVENT_PUBLISHER", "kafka")
        reset_publisher()
        with pytest.raises(ValueError):
            get_publisher()


class TestMetrics:
    def test_in_memory_counts(self):
        metrics = InMemoryMetrics()
        metrics.increment("order.submit")
        metrics.increment("order.submit", 2)
        assert metrics.count("order.submit") == 3
        assert metrics.count("order.approve") == 0

    def test_log_metrics_emits_metric_event(self):
        with capture_logs() as logs:
            LogMetrics().increment("order.approve")
        assert logs == [{"event": "metric", "metric": "order.approve", "value": 1, "log_level": "info"}]

    def test_factory_selects_log_sink(self, monkeypatch):
        monkeypatch.setenv("METRICS_SINK", "log")
        reset_metrics()
        assert isinstance(get_metrics(), LogMetrics)

    def test_set_metrics(self):
        metrics = InMemoryMetrics()
        set_metrics(metrics)
        assert get_metrics() is metrics
