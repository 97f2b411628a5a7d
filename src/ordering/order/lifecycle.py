"""Order lifecycle: terminal transitions outside the commit saga.

Abandon, seller lapse, reject, fulfill and refund. Each runs under the
order lock, validates through the state machine, persists, counts
``order.<action>`` and publishes the OrderEvent.

Leaving a state that holds the buyer's money (a hold after submit, a
capture after approve) for canceled/refunded first refunds the latest
charge; leaving a state that holds inventory releases every line item.
"""

from datetime import UTC, datetime

import structlog
from inventory.gateway import get_gateway as get_inventory_gateway
from inventory.gateway.port import InventoryGateway
from payments.gateway import get_gateway as get_payment_gateway
from payments.gateway.port import PaymentGateway
from shared.errors import ProcessingError
from shared.metrics import get_metrics
from shared.metrics.port import MetricsSink
from shared.publisher import get_publisher
from shared.publisher.port import EventPublisher

from ordering.domain import Settings
from ordering.domain import settings as default_settings
from ordering.order.events import post_order_event
from ordering.order.order import Order, OrderState, StateReason, Transaction
from ordering.order.repository import OrderRepository, get_repository
from ordering.order.state_machine import OrderAction, OrderStateMachine

logger = structlog.get_logger(__name__)

_INVENTORY_HOLDING_STATES = {OrderState.SUBMITTED, OrderState.APPROVED}
_MONEY_RETURNING_STATES = {OrderState.CANCELED, OrderState.REFUNDED}


class OrderLifecycle:
    def __init__(
        self,
        repository: OrderRepository | None = None,
        inventory_gateway: InventoryGateway | None = None,
        payment_gateway: PaymentGateway | None = None,
        publisher: EventPublisher | None = None,
        metrics: MetricsSink | None = None,
        settings: Settings | None = None,
    ):
        self.repository = repository or get_repository()
        self.inventory_gateway = inventory_gateway or get_inventory_gateway()
        self.payment_gateway = payment_gateway or get_payment_gateway()
        self.publisher = publisher or get_publisher()
        self.metrics = metrics or get_metrics()
        self.state_machine = OrderStateMachine((settings or default_settings).state_expirations)

    def abandon(self, order_id: str, user_id: str | None = None) -> Order:
        """Cancel a pending order the buyer never submitted."""
        return self._transition(order_id, OrderAction.ABANDON, StateReason.EXPIRED_UNCONFIRMED.value, user_id)

    def seller_lapse(self, order_id: str, user_id: str | None = None) -> Order:
        """Cancel a submitted order the seller did not respond to in time."""
        return self._transition(order_id, OrderAction.SELLER_LAPSE, StateReason.SELLER_LAPSED.value, user_id)

    def reject(self, order_id: str, user_id: str | None, reason: str = StateReason.SELLER_REJECTED.value) -> Order:
        return self._transition(order_id, OrderAction.REJECT, reason, user_id)

    def fulfill(self, order_id: str, user_id: str | None) -> Order:
        return self._transition(order_id, OrderAction.FULFILL, None, user_id)

    def refund(self, order_id: str, user_id: str | None) -> Order:
        return self._transition(order_id, OrderAction.REFUND, None, user_id)

    def _transition(self, order_id: str, action: OrderAction, reason: str | None, user_id: str | None) -> Order:
        with self.repository.lock(order_id):
            order = self.repository.get(order_id)
            new_state = self.state_machine.apply(order, action)
            previous_state = OrderState(order.state)

            if new_state in _MONEY_RETURNING_STATES:
                self._refund_latest_charge(order)
                if previous_state in _INVENTORY_HOLDING_STATES:
                    self._release_inventory(order)

            now = datetime.now(UTC)
            expires_at = self.state_machine.expires_at(new_state, now)
            order.transition_to(new_state, reason=reason, expires_at=expires_at, now=now)
            self.repository.add(order)

        self.metrics.increment(f"order.{action.value}")
        post_order_event(self.publisher, order, action.value, user_id)
        logger.info(
            "Order transitioned",
            order_id=str(order.id),
            action=action.value,
            from_state=previous_state.value,
            to_state=order.state,
            reason=reason,
        )
        return order

    def _refund_latest_charge(self, order: Order):
        charge = order.last_successful_charge
        if charge is None:
            return

        result = self.payment_gateway.refund(charge.external_id, charge.amount_cents)
        transaction = Transaction.from_charge_result(result)
        order.add_transaction(transaction)
        if transaction.failed:
            # Keep the evidence, leave the state alone
            self.repository.add(order)
            raise ProcessingError(
                "refund_failed",
                transaction_id=transaction.id,
                failure_code=transaction.failure_code,
                failure_message=transaction.failure_message,
            )

    def _release_inventory(self, order: Order):
        for li in order.line_items:
            try:
                self.inventory_gateway.undeduct(li)
            except Exception as exc:
                logger.error(
                    "Failed to release inventory",
                    order_id=str(order.id),
                    line_item_id=str(li.id),
                    error=str(exc),
                )
