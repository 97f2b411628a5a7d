"""Transaction notifier port: tells a user about a transaction on their order.

Used after a declined charge so the buyer hears about it. Delivery is
fire-and-forget: the caller never waits on, or fails because of, the
notification.
"""

from abc import ABC, abstractmethod

TRANSACTION_CREATED = "transaction.created"


class TransactionNotifier(ABC):
    @abstractmethod
    def notify(self, transaction_id: str, event: str, user_id: str | None) -> None:
        """Queue a notification about ``transaction_id`` for ``user_id``."""
        ...
