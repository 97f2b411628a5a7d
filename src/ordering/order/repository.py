"""Order repository: the single shared mutable resource of the commit path.

Gives each order single-writer exclusivity: ``lock(order_id)`` serializes
writers of the same order within the process, and every ``add`` is checked
against the aggregate's ``_version`` by the persistence provider, so a
writer holding a stale copy is refused instead of overwriting newer state.

Orders are rebuilt from the store on every ``get``, so an in-flight object
can be mutated freely and is only visible to others once ``add`` succeeds.
Provider errors are translated into the exchange's typed errors.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from protean.exceptions import ExpectedVersionError as VersionConflictError
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from shared.errors import ExpectedVersionError, OrderNotFoundError

from ordering.domain import ordering
from ordering.order.order import Order

_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


@contextmanager
def order_lock(order_id: str) -> Iterator[None]:
    """Hold the writer lock of ``order_id`` (re-entrant per thread)."""
    with _locks_guard:
        lock = _locks.setdefault(str(order_id), threading.RLock())
    with lock:
        yield


@ordering.repository(part_of=Order)
class OrderRepository:
    def get(self, identifier):
        """Return a fresh copy of the stored order. Raises OrderNotFoundError."""
        try:
            return super().get(identifier)
        except ObjectNotFoundError as exc:
            if isinstance(exc, OrderNotFoundError):
                raise
            raise OrderNotFoundError(identifier) from exc

    def add(self, item):
        """Insert or update ``item`` if its version is current; advances the version."""
        expected = item._version
        try:
            return super().add(item)
        except VersionConflictError as exc:
            if isinstance(exc, ExpectedVersionError):
                raise
            raise ExpectedVersionError(item.id, expected=expected) from exc

    def lock(self, order_id: str):
        return order_lock(order_id)


def get_repository() -> OrderRepository:
    """Return the order repository of the active domain."""
    return current_domain.repository_for(Order)
