"""Notifier that hands each notification to a worker thread.

Wraps another notifier so the commit path returns without waiting on
delivery. Failures are logged from the worker and never reach the caller.
"""

from concurrent.futures import Future, ThreadPoolExecutor

import structlog

from notifications.dispatch.port import TransactionNotifier

logger = structlog.get_logger(__name__)


class BackgroundNotifier(TransactionNotifier):
    def __init__(self, inner: TransactionNotifier, max_workers: int = 2) -> None:
        self.inner = inner
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def notify(self, transaction_id: str, event: str, user_id: str | None) -> None:
        future = self._executor.submit(self.inner.notify, transaction_id, event, user_id)
        future.add_done_callback(lambda f: self._log_failure(f, transaction_id, event))

    @staticmethod
    def _log_failure(future: Future, transaction_id: str, event: str) -> None:
        error = future.exception()
        if error is not None:
            logger.error(
                "Transaction notification failed",
                transaction_id=transaction_id,
                notification_event=event,
                error=str(error),
            )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
