"""Event publisher port (abstract interface).

Publishing is fire-and-forget with at-least-once semantics: callers do not
wait for consumers and a duplicate delivery is acceptable.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class EventPublisher(ABC):
    """Abstract event publisher interface."""

    @abstractmethod
    def publish(self, topic: str, event: BaseModel) -> None:
        """Publish an event on a topic."""
        ...
