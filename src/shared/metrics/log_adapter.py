"""Metrics sink that emits every increment as a structured log line.

Useful where no statsd agent runs: the log pipeline can aggregate the
``metric`` events downstream.
"""

import structlog

from shared.metrics.port import MetricsSink

logger = structlog.get_logger(__name__)


class LogMetrics(MetricsSink):
    def increment(self, name: str, value: int = 1) -> None:
        logger.info("metric", metric=name, value=value)
