"""Order expiration: re-validates an order when its expiry timer fires.

Invoked by an external scheduler (job queue, cron) at the order's
``state_expires_at``, by processing an ``ExpireOrder`` command. Delivery is
at-least-once and the order may have moved on through another path since
the timer was set, so every call re-checks:

- the order must still be in the state the timer was set for, and
- the expiry moment must have been reached.

Otherwise the trigger is stale and nothing happens. A pending order is
abandoned; a submitted order lapses on the seller's side. Other states
never expire here.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String

from ordering.domain import ordering
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import Order, OrderState
from ordering.order.repository import OrderRepository, get_repository

logger = structlog.get_logger(__name__)


def as_utc(moment: datetime) -> datetime:
    """Timestamps without a zone are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@ordering.command(part_of="Order")
class ExpireOrder:
    """Scheduler payload: expire ``order_id`` if it is still in ``state``."""

    order_id: Identifier(required=True)
    state: String(required=True, max_length=20)
    as_of: DateTime()  # Optional: defaults to now


class ExpirationReconciler:
    def __init__(self, repository: OrderRepository | None = None, lifecycle: OrderLifecycle | None = None):
        self.repository = repository or get_repository()
        self.lifecycle = lifecycle or OrderLifecycle(repository=self.repository)
        self._dispatch = {
            OrderState.PENDING.value: self.lifecycle.abandon,
            OrderState.SUBMITTED.value: self.lifecycle.seller_lapse,
        }

    def handle(self, command: ExpireOrder) -> bool:
        return self.reconcile(command.order_id, command.state, as_of=command.as_of)

    def reconcile(self, order_id: str, expected_state: str, as_of: datetime | None = None) -> bool:
        """Expire the order if the trigger is still valid. Returns True when a transition happened."""
        as_of = as_utc(as_of or datetime.now(UTC))
        expire = self._dispatch.get(expected_state)
        if expire is None:
            logger.warning(
                "Expiration requested for a state that does not expire", order_id=order_id, state=expected_state
            )
            return False

        with self.repository.lock(order_id):
            order = self.repository.get(order_id)
            if order.state != expected_state:
                logger.info(
                    "Stale expiration trigger: state changed",
                    order_id=order_id,
                    expected_state=expected_state,
                    current_state=order.state,
                )
                return False
            if order.state_expires_at is None or as_of < as_utc(order.state_expires_at):
                logger.info(
                    "Stale expiration trigger: not yet expired",
                    order_id=order_id,
                    state_expires_at=str(order.state_expires_at),
                    as_of=str(as_of),
                )
                return False

            expire(order_id)

        logger.info("Order expired", order_id=order_id, expired_state=expected_state)
        return True


@ordering.command_handler(part_of=Order)
class ExpireOrderHandler:
    @handle(ExpireOrder)
    def expire_order(self, command):
        return ExpirationReconciler().handle(command)
