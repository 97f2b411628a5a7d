"""In-memory metrics sink: counts increments for test assertions."""

from collections import Counter

from shared.metrics.port import MetricsSink


class InMemoryMetrics(MetricsSink):
    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()

    def increment(self, name: str, value: int = 1) -> None:
        self.counters[name] += value

    def count(self, name: str) -> int:
        return self.counters[name]

    def reset(self) -> None:
        self.counters.clear()
