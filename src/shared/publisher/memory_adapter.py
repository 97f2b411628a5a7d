"""In-memory event publisher: records published events for tests and local runs."""

from pydantic import BaseModel

from shared.publisher.port import EventPublisher


class InMemoryPublisher(EventPublisher):
    def __init__(self) -> None:
        self.published: list[tuple[str, BaseModel]] = []
        self.should_succeed = True

    def configure(self, should_succeed: bool = True) -> None:
        self.should_succeed = should_succeed

    def publish(self, topic: str, event: BaseModel) -> None:
        if not self.should_succeed:
            raise ConnectionError(f"Event bus unavailable for topic {topic}")
        self.published.append((topic, event))

    def events_for(self, topic: str) -> list[BaseModel]:
        return [event for t, event in self.published if t == topic]

    def reset(self) -> None:
        self.published.clear()
        self.should_succeed = True
