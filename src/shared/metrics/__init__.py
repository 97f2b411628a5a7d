"""Metrics sink factory.

Uses InMemoryMetrics by default. Set METRICS_SINK=log to emit counters
through structlog instead.
"""

import os

from shared.metrics.port import MetricsSink

_current_sink: MetricsSink | None = None


def get_metrics() -> MetricsSink:
    global _current_sink
    if _current_sink is None:
        adapter = os.environ.get("METRICS_SINK", "memory")
        if adapter == "memory":
            from shared.metrics.memory_adapter import InMemoryMetrics

            _current_sink = InMemoryMetrics()
        elif adapter == "log":
            from shared.metrics.log_adapter import LogMetrics

            _current_sink = LogMetrics()
        else:
            raise ValueError(f"Unknown metrics sink: {adapter}")
    return _current_sink


def set_metrics(sink: MetricsSink) -> None:
    global _current_sink
    _current_sink = sink


def reset_metrics() -> None:
    global _current_sink
    _current_sink = None
