"""Metrics sink port: operational counters."""

from abc import ABC, abstractmethod


class MetricsSink(ABC):
    @abstractmethod
    def increment(self, name: str, value: int = 1) -> None:
        """Increment the named counter."""
        ...
