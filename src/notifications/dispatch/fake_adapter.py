"""Fake notifier: records notifications in memory for test assertions."""

from notifications.dispatch.port import TransactionNotifier


class FakeNotifier(TransactionNotifier):
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification queue unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification queue unavailable"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, transaction_id: str, event: str, user_id: str | None) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        self.sent.append({"transaction_id": transaction_id, "event": event, "user_id": user_id})

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
