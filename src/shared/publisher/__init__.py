"""Event publisher factory.

The adapter is picked from the EVENT_PUBLISHER environment variable.
Only the in-memory adapter ships; the real bus is wired in by the host.
"""

import os

from shared.publisher.port import EventPublisher

_current_publisher: EventPublisher | None = None


def get_publisher() -> EventPublisher:
    global _current_publisher
    if _current_publisher is None:
        adapter = os.environ.get("EVENT_PUBLISHER", "memory")
        if adapter == "memory":
            from shared.publisher.memory_adapter import InMemoryPublisher

            _current_publisher = InMemoryPublisher()
        else:
            raise ValueError(f"Unknown event publisher: {adapter}")
    return _current_publisher


def set_publisher(publisher: EventPublisher) -> None:
    global _current_publisher
    _current_publisher = publisher


def reset_publisher() -> None:
    global _current_publisher
    _current_publisher = None
