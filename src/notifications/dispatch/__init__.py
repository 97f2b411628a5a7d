"""Transaction notifier factory.

TRANSACTION_NOTIFIER selects the adapter: ``fake`` (default) records in
memory, ``background`` runs the fake on a worker thread.
"""

import os

from notifications.dispatch.port import TransactionNotifier

_notifier_instance: TransactionNotifier | None = None


def get_notifier() -> TransactionNotifier:
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("TRANSACTION_NOTIFIER", "fake")
        if adapter == "fake":
            from notifications.dispatch.fake_adapter import FakeNotifier

            _notifier_instance = FakeNotifier()
        elif adapter == "background":
            from notifications.dispatch.background_adapter import BackgroundNotifier
            from notifications.dispatch.fake_adapter import FakeNotifier

            _notifier_instance = BackgroundNotifier(FakeNotifier())
        else:
            raise ValueError(f"Unknown transaction notifier: {adapter}")
    return _notifier_instance


def set_notifier(notifier: TransactionNotifier) -> None:
    global _notifier_instance
    _notifier_instance = notifier


def reset_notifier() -> None:
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
