"""Order commit: the saga behind the ``submit`` and ``approve`` actions.

Flow (each step short-circuits on failure):
    1. Preconditions: committable action, complete order, allowed state,
       artwork versions unchanged, usable credit card, commission rate.
       Totals are recomputed with the partner's current commission rate.
    2. Reservation: deduct inventory for every line item.
    3. Transition + charge: move to the new state, then hold (submit) or
       capture (approve) the buyer's payment.
    4. Settlement: store the charge id, append the transaction to the
       order history and persist the order.
    5. Compensation: any failure after reservation began (including a
       refused persist in step 4) releases every item deducted by this
       call before the error propagates. A produced transaction is then
       appended to the order as it was stored before the call; a failed
       charge also notifies the acting user. If that record cannot be
       written it is logged and the original error still propagates.
    6. Finalization: count ``order.<action>`` and publish the OrderEvent.

The whole call runs under the order's repository lock on copies loaded
inside the lock, so two concurrent commits of one order serialize and the
second one fails the state machine check.
"""

import re
import unicodedata
from datetime import UTC, datetime

import structlog
from inventory.gateway import get_gateway as get_inventory_gateway
from inventory.gateway.port import InventoryGateway
from notifications.dispatch import get_notifier
from notifications.dispatch.port import TRANSACTION_CREATED, TransactionNotifier
from partners.gateway import get_gateway as get_party_gateway
from partners.gateway.port import CreditCard, ExternalPartyGateway, Partner
from payments.gateway import get_gateway as get_payment_gateway
from payments.gateway.port import ChargeParams, PaymentGateway
from shared.errors import ProcessingError, ValidationError
from shared.metrics import get_metrics
from shared.metrics.port import MetricsSink
from shared.publisher import get_publisher
from shared.publisher.port import EventPublisher

from ordering.domain import Settings
from ordering.domain import settings as default_settings
from ordering.order.events import post_order_event
from ordering.order.order import LineItem, Order, Transaction
from ordering.order.repository import OrderRepository, get_repository
from ordering.order.state_machine import COMMITTABLE_ACTIONS, OrderAction, OrderStateMachine
from ordering.order.totals import OrderTotalUpdater

logger = structlog.get_logger(__name__)

ARTWORK_VERSION_MISMATCH_METRIC = "submit.artwork_version_mismatch"
DESCRIPTION_PARTNER_LENGTH = 12

_COMMITTABLE_VALUES = {a.value for a in COMMITTABLE_ACTIONS}

_CHARGE_FAILURE_CODES = {
    OrderAction.SUBMIT: "charge_authorization_failed",
    OrderAction.APPROVE: "capture_failed",
}


def parameterize(text: str) -> str:
    """URL-slug ``text``: ascii, lower case, runs of other characters become one dash."""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")


def charge_description(partner_name: str | None, suffix: str) -> str:
    """Statement descriptor: ``GALLERY-NAME via Brand``."""
    slug = parameterize(partner_name or "")[:DESCRIPTION_PARTNER_LENGTH].upper()
    return f"{slug} {suffix}".strip()


def charge_metadata(order: Order, partner: Partner) -> dict:
    return {
        "exchange_order_id": str(order.id),
        "buyer_id": order.buyer_id,
        "buyer_type": order.buyer_type,
        "seller_id": order.seller_id,
        "seller_type": order.seller_type,
        "type": "auction-bn" if partner.is_auction else "bn-mo",
    }


class CommitCoordinator:
    """Commits an order against inventory and payments, compensating on failure."""

    def __init__(
        self,
        repository: OrderRepository | None = None,
        party_gateway: ExternalPartyGateway | None = None,
        inventory_gateway: InventoryGateway | None = None,
        payment_gateway: PaymentGateway | None = None,
        publisher: EventPublisher | None = None,
        notifier: TransactionNotifier | None = None,
        metrics: MetricsSink | None = None,
        settings: Settings | None = None,
    ):
        self.repository = repository or get_repository()
        self.party_gateway = party_gateway or get_party_gateway()
        self.inventory_gateway = inventory_gateway or get_inventory_gateway()
        self.payment_gateway = payment_gateway or get_payment_gateway()
        self.publisher = publisher or get_publisher()
        self.notifier = notifier or get_notifier()
        self.metrics = metrics or get_metrics()
        self.settings = settings or default_settings
        self.state_machine = OrderStateMachine(self.settings.state_expirations)

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    def commit(self, order: Order, action, user_id: str | None) -> Order:
        """Run ``action`` (submit or approve) on ``order`` and return the persisted result.

        Raises ValidationError or ProcessingError with a machine-readable
        code; unexpected gateway and storage errors propagate unchanged. In
        every failure case inventory deducted by this call has been released.
        """
        action = self._committable(action)
        with self.repository.lock(order.id):
            return self._commit(order.id, action, user_id)

    # -------------------------------------------------------------------
    # Saga
    # -------------------------------------------------------------------
    def _commit(self, order_id: str, action: OrderAction, user_id: str | None) -> Order:
        log = logger.bind(order_id=str(order_id), action=action.value, user_id=user_id)
        # Work on one copy; a failed attempt is recorded on the untouched one
        order = self.repository.get(order_id)
        stored = self.repository.get(order_id)
        deducted: list[LineItem] = []
        transaction: Transaction | None = None

        try:
            new_state, credit_card, partner = self._pre_process(order, action)
            self._deduct_inventory(order, deducted)

            now = datetime.now(UTC)
            order.transition_to(new_state, expires_at=self.state_machine.expires_at(new_state, now), now=now)
            transaction = self._process_payment(order, action, credit_card, partner)
            if transaction.failed:
                raise ProcessingError(
                    _CHARGE_FAILURE_CODES[action],
                    transaction_id=transaction.id,
                    failure_code=transaction.failure_code,
                    failure_message=transaction.failure_message,
                )
            order.external_charge_id = transaction.external_id
            self._record_transaction(order, transaction, user_id)
        except Exception as exc:
            log.warning(
                "Order commit failed",
                error=str(exc),
                deducted=len(deducted),
                transaction_id=transaction.id if transaction is not None else None,
            )
            self._undeduct_inventory(deducted)
            if transaction is not None:
                self._record_failed_attempt(stored, transaction, user_id)
            raise

        self.metrics.increment(f"order.{action.value}")
        post_order_event(self.publisher, order, action.value, user_id)
        log.info("Order committed", state=order.state, external_charge_id=order.external_charge_id)
        return order

    @staticmethod
    def _committable(action) -> OrderAction:
        value = action.value if isinstance(action, OrderAction) else action
        if value not in _COMMITTABLE_VALUES:
            raise ValidationError("uncommittable_action", action=str(value))
        return OrderAction(value)

    def _pre_process(self, order: Order, action: OrderAction):
        if not order.can_commit:
            raise ValidationError("missing_required_info", order_id=str(order.id))

        new_state = self.state_machine.apply(order, action)

        self._validate_artwork_versions(order)
        credit_card = self._validate_credit_card(order)
        partner = self._validate_commission_rate(order)

        OrderTotalUpdater(order, partner.effective_commission_rate).update_totals()
        return new_state, credit_card, partner

    def _validate_artwork_versions(self, order: Order):
        for li in order.line_items:
            artwork = self.party_gateway.get_artwork(li.artwork_id)
            if artwork is None:
                raise ValidationError("unknown_artwork", artwork_id=li.artwork_id)
            if artwork.current_version_id != li.artwork_version_id:
                self.metrics.increment(ARTWORK_VERSION_MISMATCH_METRIC)
                raise ProcessingError(
                    "artwork_version_mismatch",
                    artwork_id=li.artwork_id,
                    expected_version_id=li.artwork_version_id,
                    current_version_id=artwork.current_version_id,
                )

    def _validate_credit_card(self, order: Order) -> CreditCard:
        credit_card = self.party_gateway.get_credit_card(order.credit_card_id)
        if credit_card is None:
            raise ValidationError("credit_card_not_found", credit_card_id=order.credit_card_id)

        # Most severe problem wins
        error_type = None
        if not credit_card.external_id:
            error_type = "credit_card_missing_external_id"
        if credit_card.customer_account is None or not credit_card.customer_account.external_id:
            error_type = "credit_card_missing_customer"
        if credit_card.deactivated_at is not None:
            error_type = "credit_card_deactivated"
        if error_type:
            raise ValidationError(error_type, credit_card_id=credit_card.id)
        return credit_card

    def _validate_commission_rate(self, order: Order) -> Partner:
        partner = self.party_gateway.fetch_partner(order.seller_id)
        if partner is None:
            raise ValidationError("unknown_partner", partner_id=order.seller_id)
        if partner.effective_commission_rate is None:
            raise ValidationError("missing_commission_rate", partner_id=partner.id)
        return partner

    def _deduct_inventory(self, order: Order, deducted: list[LineItem]):
        for li in order.line_items:
            self.inventory_gateway.deduct(li)
            deducted.append(li)

    def _undeduct_inventory(self, deducted: list[LineItem]):
        for li in deducted:
            try:
                self.inventory_gateway.undeduct(li)
            except Exception as exc:
                logger.error(
                    "Failed to release inventory",
                    order_id=str(li.order_id),
                    line_item_id=str(li.id),
                    artwork_id=li.artwork_id,
                    error=str(exc),
                )

    def _process_payment(self, order: Order, action: OrderAction, credit_card: CreditCard, partner: Partner):
        merchant_account = self.party_gateway.get_merchant_account(order.seller_id)
        if merchant_account is None:
            raise ValidationError("missing_merchant_account", partner_id=order.seller_id)

        params = ChargeParams(
            credit_card=credit_card,
            buyer_amount=order.buyer_total_cents,
            seller_amount=order.seller_total_cents,
            merchant_account=merchant_account,
            currency_code=order.currency_code,
            description=charge_description(partner.name, self.settings.charge_description_suffix),
            metadata=charge_metadata(order, partner),
            capture=action == OrderAction.APPROVE,
            charge_id=order.external_charge_id if action == OrderAction.APPROVE else None,
        )
        result = self.payment_gateway.charge(params)
        return Transaction.from_charge_result(result)

    # -------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------
    def _record_transaction(self, order: Order, transaction: Transaction, user_id: str | None):
        order.add_transaction(transaction)
        self.repository.add(order)
        if transaction.failed:
            self._notify_failed_charge(transaction, user_id)

    def _notify_failed_charge(self, transaction: Transaction, user_id: str | None):
        try:
            self.notifier.notify(transaction.id, TRANSACTION_CREATED, user_id)
        except Exception as exc:
            logger.warning(
                "Failed charge notification not delivered",
                transaction_id=transaction.id,
                user_id=user_id,
                error=str(exc),
            )

    def _record_failed_attempt(self, stored: Order, transaction: Transaction, user_id: str | None):
        """Keep the charge on the order as it was before this call, without masking the commit error."""
        try:
            self._record_transaction(stored, transaction, user_id)
        except Exception as exc:
            logger.error(
                "Failed to record transaction",
                order_id=str(stored.id),
                transaction_id=transaction.id,
                transaction_status=transaction.status,
                error=str(exc),
            )
